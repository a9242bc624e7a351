"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core,
engine or api.

Import patterns:
    from swarmrest.contracts import Locator, OperationDescriptor, NotAuthenticated
"""

from swarmrest.contracts.errors import (
    InvalidUsername,
    MalformedSpecifier,
    NoIdSpecified,
    NoOperationsSpecified,
    NoOpSpecified,
    NotAuthenticated,
    NoTypeSpecified,
    OpenFailed,
    ProcessingError,
    SwarmRestError,
    UnsupportedRequestFormat,
    UnsupportedToken,
    WrongBodyFormat,
    WrongRoute,
)
from swarmrest.contracts.host import (
    DeliverySink,
    ListenerRemovable,
    ObjectHandle,
    ObjectHost,
    StateReadyAware,
    StateReadyCancellable,
)
from swarmrest.contracts.locator import Locator
from swarmrest.contracts.operations import (
    PARAM_ADD_VERSION_INFO,
    PARAM_COLLECTION_ENTRIES,
    PARAM_USER,
    READ_OP,
    RESERVED_PARAMS,
    OperationDescriptor,
    RunOptions,
)

__all__ = [
    "PARAM_ADD_VERSION_INFO",
    "PARAM_COLLECTION_ENTRIES",
    "PARAM_USER",
    "READ_OP",
    "RESERVED_PARAMS",
    "DeliverySink",
    "InvalidUsername",
    "ListenerRemovable",
    "Locator",
    "MalformedSpecifier",
    "NoIdSpecified",
    "NoOpSpecified",
    "NoOperationsSpecified",
    "NoTypeSpecified",
    "NotAuthenticated",
    "ObjectHandle",
    "ObjectHost",
    "OpenFailed",
    "OperationDescriptor",
    "ProcessingError",
    "RunOptions",
    "StateReadyAware",
    "StateReadyCancellable",
    "SwarmRestError",
    "UnsupportedRequestFormat",
    "UnsupportedToken",
    "WrongBodyFormat",
    "WrongRoute",
]
