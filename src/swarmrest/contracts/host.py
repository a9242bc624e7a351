# src/swarmrest/contracts/host.py
"""Protocols for the Object Host collaborator.

The Object Host is the external versioned object store. swarm-rest never
reimplements its semantics; it only drives objects through open, apply and
close using the contract below.

Lifecycle of a target within one request:
1. get(target_id) - obtain a handle (may not be hydrated yet)
2. deliver(target!version.on) - activate, then wait for readiness
3. deliver(target!version.op) / handle.pojo() - apply
4. deliver(target!version.off) - deactivate
"""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from swarmrest.contracts.locator import Locator

# Operation names used for directives
ACTIVATE_OP = "on"
DEACTIVATE_OP = "off"
ERROR_OP = "error"

# Directive values carried by activate/deactivate
ACTIVATE_VALUE = "!0"
DEACTIVATE_VALUE = ""

INIT_EVENT_SUFFIX = ".init"


def init_event(target_id: str) -> str:
    """Name of the host-wide readiness notification for a target."""
    return target_id + INIT_EVENT_SUFFIX


@runtime_checkable
class DeliverySink(Protocol):
    """Receiver for the host's delivery acknowledgements.

    The host calls deliver() for every operation it pushes back to the
    sender (including ``.error`` operations) and error() for explicit
    failures. Calls may arrive synchronously from within host.deliver()
    or later from the event loop.
    """

    id: str

    def deliver(self, locator: "Locator", value: Any) -> None: ...

    def error(self, locator: "Locator", message: Any) -> None: ...


@runtime_checkable
class ObjectHandle(Protocol):
    """Live object obtained from the host."""

    type: str
    id: str

    def pojo(self, add_version_info: bool) -> dict[str, Any]:
        """Return a plain JSON-serializable snapshot of current state."""
        ...


@runtime_checkable
class StateReadyAware(Protocol):
    """Collection-like handles that can signal full state readiness.

    Their snapshots carry an ``entries`` list of ``/Type#id`` references.
    """

    def on_object_state_ready(self, callback: Callable[[], None]) -> None: ...


@runtime_checkable
class ObjectHost(Protocol):
    """The versioned object store collaborator."""

    id: str

    def get(self, target_id: str) -> ObjectHandle: ...

    async def deliver(self, locator: "Locator", value: Any, sink: DeliverySink) -> None:
        """Submit a directive or operation; acknowledgements go to ``sink``."""
        ...

    def once(self, event: str, callback: Callable[[], None]) -> None:
        """Register a one-shot listener for a host event."""
        ...

    def time(self) -> str:
        """Current logical time, ``<stamp>+<host id>``; advances on every call."""
        ...


@runtime_checkable
class ListenerRemovable(Protocol):
    """Hosts that can withdraw a once() listener that has not fired yet.

    Used when a request stops waiting for readiness (failed activation,
    cancelled open) so abandoned listeners do not accumulate on the host.
    """

    def off(self, event: str, callback: Callable[[], None]) -> None: ...


@runtime_checkable
class StateReadyCancellable(Protocol):
    """Handles that can withdraw a pending on_object_state_ready() callback."""

    def off_object_state_ready(self, callback: Callable[[], None]) -> None: ...
