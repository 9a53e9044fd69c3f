# Author: Bradley R. Kinnard
# todo-list domain - TodoMVC as an action system

"""
TodoMVC state machine: a list of items, a pending input line and the
selected view filter.

The headline invariant is

    totalItems = 0  ∨  selectedFilter is set

i.e. a filter is selected whenever there is something to show. For the
induction to go through, the initial state has to satisfy it too, and
that is not automatic for every state one might start from (a state with
items and no filter breaks it at step zero). make_initial_state therefore
checks "no filter => no items" and refuses to build a state that violates
it, instead of the property being assumed.
"""

from dataclasses import dataclass, replace
from enum import Enum
import random
from typing import Any

from domains.base import Domain
from temporal.formula import every_step
from verification.action_system import ActionSystem
from verification.invariants import Invariant


class Filter(Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass(frozen=True)
class TodoItem:
    id: int
    text: str
    completed: bool = False


@dataclass(frozen=True)
class TodoState:
    items: tuple[TodoItem, ...] = ()
    selected_filter: Filter | None = None
    pending_text: str = ""
    next_id: int = 0

    @property
    def total_items(self) -> int:
        return len(self.items)

    @property
    def active_count(self) -> int:
        return sum(1 for i in self.items if not i.completed)

    @property
    def completed_count(self) -> int:
        return self.total_items - self.active_count

    def item(self, item_id: int) -> TodoItem | None:
        for i in self.items:
            if i.id == item_id:
                return i
        return None

    def visible_items(self) -> tuple[TodoItem, ...]:
        return _visible(self.items, self.selected_filter)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [
                {"id": i.id, "text": i.text, "completed": i.completed} for i in self.items
            ],
            "selectedFilter": None if self.selected_filter is None else self.selected_filter.value,
            "pendingText": self.pending_text,
            "nextId": self.next_id,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "TodoState":
        selected = d.get("selectedFilter")
        return make_initial_state(
            items=[TodoItem(i["id"], i["text"], i.get("completed", False)) for i in d.get("items", [])],
            selected_filter=None if selected is None else Filter(selected),
            pending_text=d.get("pendingText", ""),
            next_id=d.get("nextId"),
        )


# actions, named after their wire "type"

@dataclass(frozen=True)
class EnterText:
    text: str


@dataclass(frozen=True)
class AddTodo:
    pass


@dataclass(frozen=True)
class ToggleTodo:
    id: int


@dataclass(frozen=True)
class DeleteTodo:
    id: int


@dataclass(frozen=True)
class SetFilter:
    filter: Filter


@dataclass(frozen=True)
class ToggleAll:
    pass


@dataclass(frozen=True)
class ClearCompleted:
    pass


def make_initial_state(
    items: list[TodoItem] | tuple[TodoItem, ...] = (),
    selected_filter: Filter | None = None,
    pending_text: str = "",
    next_id: int | None = None,
) -> TodoState:
    """
    build a starting state, enforcing the preconditions the invariants rely on.

    raises ValueError if there is no filter but there are items, if ids
    repeat, or if next_id is not above every id in use.
    """
    items = tuple(items)
    if selected_filter is None and items:
        raise ValueError("initial state has items but no selected filter")

    ids = [i.id for i in items]
    if len(ids) != len(set(ids)):
        raise ValueError(f"duplicate item ids in initial state: {ids}")

    if next_id is None:
        next_id = max(ids, default=-1) + 1
    if any(i >= next_id for i in ids):
        raise ValueError(f"next_id {next_id} is not above every item id")

    return TodoState(items, selected_filter, pending_text, next_id)


INITIAL_STATE = make_initial_state()


def _visible(items: tuple[TodoItem, ...], selected: Filter | None) -> tuple[TodoItem, ...]:
    if selected is None:
        return ()
    if selected is Filter.ACTIVE:
        return tuple(i for i in items if not i.completed)
    if selected is Filter.COMPLETED:
        return tuple(i for i in items if i.completed)
    return items


def _settle_filter(items: tuple[TodoItem, ...], selected: Filter | None) -> Filter | None:
    """no items, no filter; a filter whose view went empty falls back to all."""
    if not items:
        return None
    if selected is None or not _visible(items, selected):
        return Filter.ALL
    return selected


def _with_items(state: TodoState, items: tuple[TodoItem, ...], **changes: Any) -> TodoState:
    selected = changes.pop("selected_filter", state.selected_filter)
    return replace(state, items=items, selected_filter=_settle_filter(items, selected), **changes)


def todo_transition(state: TodoState, action: Any) -> TodoState | None:
    if isinstance(action, EnterText):
        return replace(state, pending_text=action.text)

    if isinstance(action, AddTodo):
        text = state.pending_text.strip()
        if not text:
            return None
        item = TodoItem(state.next_id, text)
        return _with_items(
            state,
            state.items + (item,),
            pending_text="",
            next_id=state.next_id + 1,
        )

    if isinstance(action, ToggleTodo):
        if state.item(action.id) is None:
            return None
        items = tuple(
            replace(i, completed=not i.completed) if i.id == action.id else i
            for i in state.items
        )
        return _with_items(state, items)

    if isinstance(action, DeleteTodo):
        if state.item(action.id) is None:
            return None
        return _with_items(state, tuple(i for i in state.items if i.id != action.id))

    if isinstance(action, SetFilter):
        if not state.items:
            return None
        return _with_items(state, state.items, selected_filter=action.filter)

    if isinstance(action, ToggleAll):
        if not state.items:
            return None
        complete = state.active_count > 0
        return _with_items(state, tuple(replace(i, completed=complete) for i in state.items))

    if isinstance(action, ClearCompleted):
        if state.completed_count == 0:
            return None
        return _with_items(state, tuple(i for i in state.items if not i.completed))

    return None


TODO_SYSTEM = ActionSystem(todo_transition, name="todo")


# invariants

FILTER_SELECTED_WHEN_NON_EMPTY = Invariant(
    "filter_selected_when_non_empty",
    lambda s: s.total_items == 0 or s.selected_filter is not None,
    "totalItems = 0 or a filter is selected",
)

NO_FILTER_WHEN_EMPTY = Invariant(
    "no_filter_when_empty",
    lambda s: s.total_items > 0 or s.selected_filter is None,
    "an empty list has no selected filter",
)

FILTERED_VIEW_NON_EMPTY = Invariant(
    "filtered_view_non_empty",
    lambda s: s.selected_filter in (None, Filter.ALL) or len(s.visible_items()) > 0,
    "an active/completed filter always shows at least one item",
)

IDS_UNIQUE = Invariant(
    "ids_unique",
    lambda s: len({i.id for i in s.items}) == s.total_items,
    "item ids are unique",
)

NEXT_ID_FRESH = Invariant(
    "next_id_fresh",
    lambda s: all(i.id < s.next_id for i in s.items),
    "next_id is above every id in use",
)

TODO_INVARIANTS = (
    FILTER_SELECTED_WHEN_NON_EMPTY,
    NO_FILTER_WHEN_EMPTY,
    FILTERED_VIEW_NON_EMPTY,
    IDS_UNIQUE,
    NEXT_ID_FRESH,
)


def _next_id_monotonic(s: TodoState, t: TodoState) -> bool:
    return t.next_id >= s.next_id


def _grows_by_at_most_one(s: TodoState, t: TodoState) -> bool:
    return t.total_items <= s.total_items + 1


TODO_FORMULAS = (
    ("next_id_never_decreases", every_step(_next_id_monotonic)),
    ("adds_at_most_one_item_per_step", every_step(_grows_by_at_most_one)),
)


class TodoCounts:
    """observer: (active, completed) counts of a state."""

    def observe(self, state: TodoState) -> tuple[int, int]:
        return state.active_count, state.completed_count


# generation

SAMPLE_TEXTS = ("Buy groceries", "Write documentation", "Review pull requests", "  ", "")


def _pick_id(state: TodoState, rng: random.Random) -> int | None:
    if not state.items:
        return None
    return rng.choice(state.items).id


SAMPLERS = {
    "enter_text": lambda state, rng: EnterText(rng.choice(SAMPLE_TEXTS)),
    "add": lambda state, rng: AddTodo(),
    "toggle": lambda state, rng: None if not state.items else ToggleTodo(_pick_id(state, rng)),
    "delete": lambda state, rng: None if not state.items else DeleteTodo(_pick_id(state, rng)),
    "filter": lambda state, rng: SetFilter(rng.choice(list(Filter))),
    "toggle_all": lambda state, rng: ToggleAll(),
    "clear": lambda state, rng: ClearCompleted(),
}

DEFAULT_WEIGHTS = {
    "enter_text": 3,
    "add": 3,
    "toggle": 2,
    "delete": 1,
    "filter": 1,
    "toggle_all": 1,
    "clear": 1,
}


def known_actions(state: TodoState) -> list[Any]:
    """every action worth trying from state, enabled or not."""
    actions: list[Any] = [EnterText("task"), EnterText(""), AddTodo(), ToggleAll(), ClearCompleted()]
    actions += [SetFilter(f) for f in Filter]
    for item_id in [i.id for i in state.items] + [state.next_id]:
        actions += [ToggleTodo(item_id), DeleteTodo(item_id)]
    return actions


# wire format, same shape the TodoMVC web front end posts

def encode_state(state: TodoState) -> dict[str, Any]:
    return state.to_dict()


def encode_action(action: Any) -> dict[str, Any]:
    if isinstance(action, EnterText):
        return {"type": "enterText", "text": action.text}
    if isinstance(action, AddTodo):
        return {"type": "addTodo"}
    if isinstance(action, ToggleTodo):
        return {"type": "toggleTodo", "id": action.id}
    if isinstance(action, DeleteTodo):
        return {"type": "deleteTodo", "id": action.id}
    if isinstance(action, SetFilter):
        return {"type": "setFilter", "filter": action.filter.value}
    if isinstance(action, ToggleAll):
        return {"type": "toggleAll"}
    if isinstance(action, ClearCompleted):
        return {"type": "clearCompleted"}
    raise TypeError(f"not a todo action: {action!r}")


def decode_action(d: dict[str, Any]) -> Any:
    if not isinstance(d, dict):
        raise ValueError(f"todo action must be an object, got {type(d).__name__}")
    kind = d.get("type")
    if kind == "enterText":
        return EnterText(d.get("text", ""))
    if kind == "addTodo":
        return AddTodo()
    if kind == "toggleTodo":
        return ToggleTodo(int(d["id"]))
    if kind == "deleteTodo":
        return DeleteTodo(int(d["id"]))
    if kind == "setFilter":
        return SetFilter(Filter(d["filter"]))
    if kind == "toggleAll":
        return ToggleAll()
    if kind == "clearCompleted":
        return ClearCompleted()
    raise ValueError(f"unknown todo action type: {kind!r}")


TODO_DOMAIN = Domain(
    name="todo",
    system=TODO_SYSTEM,
    initial=make_initial_state,
    invariants=TODO_INVARIANTS,
    formulas=TODO_FORMULAS,
    samplers=SAMPLERS,
    default_weights=DEFAULT_WEIGHTS,
    encode_state=encode_state,
    encode_action=encode_action,
    decode_action=decode_action,
    description="TodoMVC: items, pending text, view filter",
    known_actions=known_actions,
)
