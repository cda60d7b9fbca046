from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Tool(Protocol):
    """A capability plugged into an agent.

    The agent's serving result is parsed with ``to_args``, handed to
    ``execute`` and rendered back to text with ``post``. What ``execute``
    returns (a value or an error) is only ever inspected by ``post``.

    Any object or module exposing these five callables satisfies the contract.
    """

    def pre(self, input: str) -> str:
        """Pre-process the step input before it is added to the prompt."""
        ...

    def instructions(self) -> str:
        """Static usage instructions included in the prompt."""
        ...

    def to_args(self, result: str) -> Any:
        """Parse the serving result into arguments for ``execute``."""
        ...

    def execute(self, args: Any) -> Any: ...

    def post(self, outcome: Any) -> str:
        """Render ``execute``'s outcome, success or error, as the next input."""
        ...
