from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user logs out
    """

    bubble = True


class SessionExpiredMessage(Message):
    """
    Fired by the app when the periodic check finds the session expired.
    Session and cart are already cleared when this arrives.
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever a cart line is added, removed or changes quantity.
    Will trigger a refresh of the cart screen and the sidebar

    If posted from outside CartScreen, make sure to post at App level
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is placed.
    Listened to by past orders
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
