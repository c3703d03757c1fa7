from sqlalchemy import Column, String, ForeignKey, Text, Boolean
from .base import BaseModel


class Message(BaseModel):
    __tablename__ = 'messages'

    sender_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    receiver_id = Column(String(36), ForeignKey('users.id'), nullable=False, index=True)
    invite_id = Column(String(36), ForeignKey('match_invites.id'))
    subject = Column(String(255))
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False)
