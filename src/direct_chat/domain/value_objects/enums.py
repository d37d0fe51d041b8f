from __future__ import annotations

from enum import StrEnum


class EventName(StrEnum):
    ONLINE_USERS = "onlineUsers"
    START_TYPING = "startTyping"
    STOP_TYPING = "stopTyping"
    BEGIN_TYPING = "beginTyping"
    END_TYPING = "endTyping"
    NEW_MESSAGE = "newMessage"
    MESSAGE_DELIVERED = "messageDelivered"
    ACK = "ack"
    PING = "ping"
    PONG = "pong"
    ERROR = "error"


class DeliveryState(StrEnum):
    # Intermediate labels; a finished push always reports one of the others.
    CREATED = "created"
    PUSH_ATTEMPTED = "push_attempted"
    ACKNOWLEDGED = "acknowledged"
    ACK_TIMED_OUT = "ack_timed_out"
    NO_RECIPIENT_ONLINE = "no_recipient_online"
    DELIVERED_CONFIRMED = "delivered_confirmed"

    @property
    def is_terminal(self) -> bool:
        return self not in (DeliveryState.CREATED, DeliveryState.PUSH_ATTEMPTED)


class AckStatus(StrEnum):
    ACKED = "acked"
    TIMED_OUT = "timed_out"
    NO_RECIPIENT = "no_recipient"


ACK_OK = "ok"
