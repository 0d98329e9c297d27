"""Models for what a commander owns or receives: items, ships, mails, builds and the rest."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, object_session, relationship

from belfast.base import Base
from belfast.catalog import Item, Ship

logger = logging.getLogger(__name__)

QUICK_FINISHER_ITEM_ID = 15003
ROOM_HISTORY_LIMIT = 50
RENAME_COOLDOWN = timedelta(days=30)

ATTACHMENT_RESOURCE = 1
ATTACHMENT_ITEM = 2


class NotEnoughQuickFinishersError(Exception):
    """The commander has no quick finisher to spend."""

    def __init__(self) -> None:
        super().__init__("not enough quick finishers")


class RenameInCooldownError(Exception):
    """The ship was renamed too recently."""

    def __init__(self) -> None:
        super().__init__("renaming is still in cooldown")


class NotProposedError(Exception):
    """Only ships the commander proposed to can be renamed."""

    def __init__(self) -> None:
        super().__init__("commander hasn't proposed this ship")


def _session_of(obj: object) -> Session:
    session = object_session(obj)
    if session is None:
        raise RuntimeError(f"{type(obj).__name__} is not attached to a session")
    return session


class CommanderItem(Base):
    __tablename__ = "commander_items"

    commander_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("items.id"), primary_key=True, autoincrement=False
    )
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    item: Mapped[Optional[Item]] = relationship(Item)


class CommanderMiscItem(Base):
    __tablename__ = "commander_misc_items"

    commander_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    item_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("items.id"), primary_key=True, autoincrement=False
    )
    data: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    item: Mapped[Optional[Item]] = relationship(Item)


class OwnedShip(Base):
    __tablename__ = "owned_ships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False)
    ship_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ships.template_id"), nullable=False
    )
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    max_level: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    intimacy: Mapped[int] = mapped_column(Integer, default=5000, nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    propose: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    common_flag: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    blueprint_flag: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    proficiency: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    activity_npc: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    custom_name: Mapped[str] = mapped_column(String(30), default="", nullable=False)
    change_name_timestamp: Mapped[datetime] = mapped_column(
        DateTime, default=lambda: datetime(1970, 1, 1, 1, 0, 0), nullable=False
    )
    create_time: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False
    )
    energy: Mapped[int] = mapped_column(Integer, default=150, nullable=False)
    skin_id: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_secretary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    secretary_position: Mapped[Optional[int]] = mapped_column(Integer, default=999)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, index=True)

    ship: Mapped[Optional[Ship]] = relationship(Ship)

    def propose_ship(self) -> None:
        """Mark the ship as proposed to and save it."""
        session = _session_of(self)
        self.propose = True
        session.flush()

    def set_favorite(self, flag: int) -> None:
        """Set the favourite flag: any non-zero value means favourite."""
        session = _session_of(self)
        self.common_flag = flag != 0
        session.flush()

    def rename(self, new_name: str) -> None:
        """Give the ship a custom name; needs a proposal and respects a 30-day cooldown."""
        session = _session_of(self)
        if not self.propose:
            raise NotProposedError()
        now = datetime.now()
        if now - self.change_name_timestamp < RENAME_COOLDOWN:
            raise RenameInCooldownError()
        self.custom_name = new_name
        self.change_name_timestamp = now + RENAME_COOLDOWN
        session.flush()


class OwnedSkin(Base):
    __tablename__ = "owned_skins"

    commander_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    skin_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime)


class Punishment(Base):
    __tablename__ = "punishments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    punished_id: Mapped[int] = mapped_column(Integer, nullable=False)
    lift_timestamp: Mapped[Optional[datetime]] = mapped_column(DateTime)
    is_permanent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sender_id: Mapped[int] = mapped_column(Integer, nullable=False)
    room_id: Mapped[int] = mapped_column(Integer, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    content: Mapped[str] = mapped_column(String(512), nullable=False)


Index("idx_sent_at", Message.sent_at.desc())


@dataclass(frozen=True)
class Attachment:
    """An attachment as sent to the client."""

    type: int
    id: int
    number: int


class MailAttachment(Base):
    __tablename__ = "mail_attachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mail_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("mails.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)


class Mail(Base):
    __tablename__ = "mails"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    receiver_id: Mapped[int] = mapped_column(Integer, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, nullable=False)
    title: Mapped[str] = mapped_column(String(40), nullable=False)
    body: Mapped[str] = mapped_column(String(2000), nullable=False)
    attachments_collected: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    is_important: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    custom_sender: Mapped[Optional[str]] = mapped_column(String(30))

    attachments: Mapped[List[MailAttachment]] = relationship(
        MailAttachment,
        cascade="all, delete-orphan",
        order_by=MailAttachment.id,
        lazy="selectin",
    )

    def set_read(self, read: bool) -> None:
        """Mark the mail as read or unread and save it."""
        session = _session_of(self)
        self.read = read
        session.flush()

    def collect_attachments(self, commander: Any) -> List[Attachment]:
        """Give every attachment to the commander and mark the mail as collected."""
        session = _session_of(self)
        collected = []
        for attachment in self.attachments:
            collected.append(
                Attachment(
                    type=attachment.type,
                    id=attachment.item_id,
                    number=attachment.quantity,
                )
            )
            if attachment.type == ATTACHMENT_RESOURCE:
                commander.add_resource(attachment.item_id, attachment.quantity)
            elif attachment.type == ATTACHMENT_ITEM:
                commander.add_item(attachment.item_id, attachment.quantity)
            else:
                logger.error("unknown attachment type %d", attachment.type)
        self.attachments_collected = True
        session.flush()
        return collected


class Like(Base):
    __tablename__ = "likes"

    group_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    liker_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)


Index("idx_likes_group_id_liker_id", Like.group_id, Like.liker_id)


class Build(Base):
    __tablename__ = "builds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    builder_id: Mapped[int] = mapped_column(Integer, nullable=False)
    ship_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ships.template_id"), nullable=False
    )
    finishes_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    ship: Mapped[Optional[Ship]] = relationship(Ship)

    def consume(self, ship_id: int, commander: Any) -> Any:
        """Delete the build, hand the built ship to the commander and return its info."""
        session = _session_of(self)
        build_id = self.id
        session.delete(self)
        session.flush()
        builds = commander.builds
        position = next(
            (i for i, build in enumerate(builds) if build.id == build_id), None
        )
        if position is not None:
            del builds[position]
        ship = commander.add_ship(ship_id)
        commander.increment_exchange_count(len(commander.builds))
        return ship

    def quick_finish(self, commander: Any) -> None:
        """Finish the build now, spending one quick finisher of the commander."""
        session = _session_of(self)
        if not commander.has_enough_item(QUICK_FINISHER_ITEM_ID, 1):
            raise NotEnoughQuickFinishersError()
        self.finishes_at = datetime.now() - timedelta(seconds=1)
        session.flush()
        commander.consume_item(QUICK_FINISHER_ITEM_ID, 1)


def get_room_history(session: Session, room_id: int) -> List[Message]:
    """Return the 50 most recent messages of a room, newest first."""
    stmt = (
        select(Message)
        .where(Message.room_id == room_id)
        .order_by(Message.sent_at.desc())
        .limit(ROOM_HISTORY_LIMIT)
    )
    return list(session.scalars(stmt))


def send_message(session: Session, room_id: int, content: str, sender: Any) -> Message:
    """Store a message sent by a commander in a room and return it."""
    message = Message(sender_id=sender.commander_id, room_id=room_id, content=content)
    session.add(message)
    session.flush()
    return message