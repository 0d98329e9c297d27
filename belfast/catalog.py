"""Static game data models and helpers around them."""

from __future__ import annotations

import random
from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    SmallInteger,
    String,
    Text,
    func,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from belfast.base import Base

RESOURCE_ALIASES = {
    14: 4,  # freeGem <=> gem
}

RARITY_COMMON = 2
RARITY_RARE = 3
RARITY_ELITE = 4
RARITY_SUPER_RARE = 5
RARITY_ULTRA_RARE = 6

_ship_rng = random.Random()


class Buff(Base):
    __tablename__ = "buffs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[Optional[str]] = mapped_column(String(50))
    description: Mapped[Optional[str]] = mapped_column(String(170))
    max_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    benefit_type: Mapped[str] = mapped_column(String(50), nullable=False)


class Item(Base):
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(70), nullable=False)
    rarity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    shop_id: Mapped[int] = mapped_column(Integer, default=-2, nullable=False)
    type: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    virtual_type: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Rarity(Base):
    __tablename__ = "rarities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[Optional[str]] = mapped_column(String(12))


class Resource(Base):
    __tablename__ = "resources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    item_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("items.id"))
    name: Mapped[str] = mapped_column(String(128), nullable=False)

    item: Mapped[Optional[Item]] = relationship(Item)


class OwnedResource(Base):
    __tablename__ = "owned_resources"

    commander_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    resource_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("resources.id"), primary_key=True, autoincrement=False
    )
    amount: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    resource: Mapped[Optional[Resource]] = relationship(Resource)


class Ship(Base):
    __tablename__ = "ships"

    template_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(32), nullable=False)
    rarity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    star: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    type: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    nationality: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    build_time: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    pool_id: Mapped[Optional[int]] = mapped_column(Integer)


class ShipType(Base):
    __tablename__ = "ship_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(32), nullable=False)


class ShopOffer(Base):
    __tablename__ = "shop_offers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    effects: Mapped[List[int]] = mapped_column(JSON, default=list, nullable=False)
    number: Mapped[int] = mapped_column(Integer, nullable=False)
    resource_number: Mapped[int] = mapped_column(Integer, nullable=False)
    resource_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("resources.id"), nullable=False
    )
    type: Mapped[int] = mapped_column(Integer, nullable=False)

    resource: Mapped[Optional[Resource]] = relationship(Resource)


class Skin(Base):
    __tablename__ = "skins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    ship_group: Mapped[int] = mapped_column(Integer, nullable=False)


class DebugName(Base):
    __tablename__ = "debug_names"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String, default="Unknown")

    frames: Mapped[List["Debug"]] = relationship(
        "Debug", back_populates="debug_name", cascade="all, delete-orphan"
    )


class Debug(Base):
    __tablename__ = "debugs"

    frame_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    packet_size: Mapped[int] = mapped_column(Integer, nullable=False)
    packet_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("debug_names.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
    )
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    logged_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    debug_name: Mapped[Optional[DebugName]] = relationship(
        DebugName, back_populates="frames"
    )


class Notice(Base):
    __tablename__ = "notices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    version: Mapped[int] = mapped_column(SmallInteger, default=1, nullable=False)
    btn_title: Mapped[str] = mapped_column(String(128), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    title_image_url: Mapped[str] = mapped_column(Text, nullable=False)
    time_desc: Mapped[str] = mapped_column(String(10), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)


class ServerState(Base):
    __tablename__ = "server_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    description: Mapped[str] = mapped_column(String(10), default="Unknown", nullable=False)
    color: Mapped[str] = mapped_column(String(8), nullable=False)

    servers: Mapped[List["Server"]] = relationship("Server", back_populates="state")


class Server(Base):
    __tablename__ = "servers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ip: Mapped[str] = mapped_column(String(255), nullable=False)
    port: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(64), nullable=False)
    state_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("server_states.id"), nullable=False
    )
    proxy_ip: Mapped[Optional[str]] = mapped_column(String(255))
    proxy_port: Mapped[Optional[int]] = mapped_column(Integer)

    state: Mapped[Optional[ServerState]] = relationship(
        ServerState, back_populates="servers"
    )


class YostarusMap(Base):
    """Maps the login token the client sends (arg2) to an account id."""

    __tablename__ = "yostarus_maps"

    arg2: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    account_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)


def dealias_resource(resource_id: int) -> int:
    """Return the canonical id of a resource (e.g. free gems count as gems)."""
    return RESOURCE_ALIASES.get(resource_id, resource_id)


def pick_rarity(roll: int) -> int:
    """Map a roll between 1 and 100 to a build rarity.

    7% super rare, 12% elite, 51% rare, 30% common.
    """
    if not 1 <= roll <= 100:
        raise ValueError(f"roll must be between 1 and 100, got {roll}")
    if roll <= 7:
        return RARITY_SUPER_RARE
    if roll <= 19:
        return RARITY_ELITE
    if roll <= 70:
        return RARITY_RARE
    return RARITY_COMMON


def get_random_pool_ship(
    session: Session, pool_id: int, rng: Optional[random.Random] = None
) -> Ship:
    """Pick a random ship of a rolled rarity from a build pool.

    Raises sqlalchemy.exc.NoResultFound when the pool has no ship of that rarity.
    """
    if rng is None:
        rng = _ship_rng
    rarity = pick_rarity(rng.randint(1, 100))
    stmt = (
        select(Ship)
        .where(Ship.pool_id == pool_id, Ship.rarity_id == rarity)
        .order_by(func.random())
        .limit(1)
    )
    return session.scalars(stmt).one()