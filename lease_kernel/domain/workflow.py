"""
Canonical workflow types (``lease_kernel.domain.workflow``).

Responsibility
--------------
Pure value objects for state machines: Guard, Transition and Workflow are
defined once and the lease lifecycle is declared in terms of them, so the
full transition table is enumerable and every transition can be tested on
its own.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  No imports from
``db/``, ``services/``, ``selectors/`` or outer layers.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
* Terminal states have no outgoing transitions.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Guard:
    """A condition that must be satisfied before a transition fires.

    Contract: frozen, descriptive only.
    Non-goals: does not evaluate the condition -- transition functions do.
    """
    name: str
    description: str


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow."""
    from_state: str
    to_state: str
    action: str
    guard: Guard | None = None


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    Contract: frozen; ``transitions`` reference only states in ``states``.
    ``terminal_states`` are states with no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.initial_state not in self.states:
            raise ValueError(
                f"Workflow {self.name}: initial state '{self.initial_state}' "
                "is not a declared state"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"Workflow {self.name}: transition {t.action} "
                    f"{t.from_state}->{t.to_state} references an unknown state"
                )
            if t.from_state in self.terminal_states:
                raise ValueError(
                    f"Workflow {self.name}: terminal state '{t.from_state}' "
                    "has an outgoing transition"
                )

    def transitions_for(self, from_state: str, action: str) -> tuple[Transition, ...]:
        """All transitions leaving ``from_state`` via ``action``."""
        return tuple(
            t for t in self.transitions
            if t.from_state == from_state and t.action == action
        )

    def source_states(self, action: str) -> tuple[str, ...]:
        """States from which ``action`` is legal, in declaration order."""
        seen: list[str] = []
        for t in self.transitions:
            if t.action == action and t.from_state not in seen:
                seen.append(t.from_state)
        return tuple(seen)


def resolve_transition(
    workflow: Workflow,
    from_state: str,
    action: str,
    to_state: str,
) -> Transition | None:
    """Return the declared transition, or None if the move is illegal."""
    for t in workflow.transitions_for(from_state, action):
        if t.to_state == to_state:
            return t
    return None
