from dataclasses import dataclass

from errors import UnknownAction

PARSE_TX = "parseTX"
GET_BALANCE = "getBalance"


@dataclass(frozen=True)
class Action:
    id: str
    name: str
    prompt_text: str


# Order here is the order of the buttons in the main menu
ACTIONS = (
    Action(PARSE_TX, "Parse Swap Tx", "Please input the transaction signature."),
    Action(GET_BALANCE, "Get Wallet Balance", "Please input the wallet address."),
)


class ActionRegistry:
    """Fixed, ordered catalog of the actions a user can pick from the menu."""

    def __init__(self, actions=ACTIONS):
        self._actions = tuple(actions)
        self._by_id = {}
        for action in self._actions:
            if action.id in self._by_id:
                raise ValueError(f"Duplicate action id: {action.id}")
            self._by_id[action.id] = action

    def __contains__(self, action_id):
        return action_id in self._by_id

    def __len__(self):
        return len(self._actions)

    def list_actions(self):
        return self._actions

    def get(self, action_id) -> Action:
        try:
            return self._by_id[action_id]
        except (KeyError, TypeError):
            raise UnknownAction(f"Unknown action: {action_id!r}") from None

    def prompt_for(self, action_id) -> str:
        return self.get(action_id).prompt_text
