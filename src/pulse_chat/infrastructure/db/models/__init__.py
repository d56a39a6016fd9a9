"""Import all models so Base.metadata sees every table."""
from pulse_chat.infrastructure.db.models.conversation import ConversationModel
from pulse_chat.infrastructure.db.models.message import MessageModel
from pulse_chat.infrastructure.db.models.outbox import OutboxEventModel
from pulse_chat.infrastructure.db.models.participant import ParticipantModel
from pulse_chat.infrastructure.db.models.read_receipt import ReadReceiptModel
from pulse_chat.infrastructure.db.models.typing_marker import TypingMarkerModel
from pulse_chat.infrastructure.db.models.user import UserModel

__all__ = [
    "ConversationModel",
    "MessageModel",
    "OutboxEventModel",
    "ParticipantModel",
    "ReadReceiptModel",
    "TypingMarkerModel",
    "UserModel",
]
