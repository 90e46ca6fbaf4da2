"""Tutoring services: store adapter, completion gateway, mode state machines."""

from athena.services.companions import AssignmentTutor, CompetitiveTutor, MentorTutor
from athena.services.exam import ExamTutor
from athena.services.gateway import AnthropicGateway, CompletionGateway
from athena.services.locks import conversation_locks
from athena.services.memory import MemoryCompactor
from athena.services.sessions import SessionResolver
from athena.services.store import ConversationStore, MentorStore
from athena.services.study import StudyTutor

__all__ = [
    "AnthropicGateway",
    "AssignmentTutor",
    "CompetitiveTutor",
    "CompletionGateway",
    "ConversationStore",
    "ExamTutor",
    "MemoryCompactor",
    "MentorStore",
    "MentorTutor",
    "SessionResolver",
    "StudyTutor",
    "conversation_locks",
]
