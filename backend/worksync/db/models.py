"""SQLAlchemy ORM models for worksync.

This module defines the durable schema behind the workspace tree.

Entity Hierarchy:
    User -> Workspace -> Folder -> File
    User <-> Workspace  (via Collaborator)
    User -> Subscription

Timestamps are epoch milliseconds. The trash marker (`in_trash`) is free text:
an empty string means active, anything else is the soft-delete provenance.
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship

SUBSCRIPTION_STATUSES = (
    "trialing",
    "active",
    "canceled",
    "incomplete",
    "incomplete_expired",
    "past_due",
    "unpaid",
)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserModel(Base):
    """User account."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(512), nullable=True)
    created_at = Column(BigInteger, nullable=False)
    updated_at = Column(BigInteger, nullable=True)

    # Relationships
    workspaces = relationship(
        "WorkspaceModel",
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    subscriptions = relationship(
        "SubscriptionModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_users_email", "email"),)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"


class WorkspaceModel(Base):
    """Workspace - top-level container owned by one user."""

    __tablename__ = "workspaces"

    id = Column(String(36), primary_key=True)
    workspace_owner = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    icon_id = Column(String(64), nullable=False)
    data = Column(Text, nullable=True)
    in_trash = Column(String(512), nullable=False, default="")
    logo = Column(String(512), nullable=True)
    banner_url = Column(String(512), nullable=True)
    created_at = Column(BigInteger, nullable=False)

    # Relationships
    owner = relationship("UserModel", back_populates="workspaces")
    folders = relationship(
        "FolderModel",
        back_populates="workspace",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    collaborators = relationship(
        "CollaboratorModel",
        back_populates="workspace",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("idx_workspaces_owner", "workspace_owner"),)

    def __repr__(self) -> str:
        return f"<Workspace(id={self.id}, title={self.title})>"


class FolderModel(Base):
    """Folder - mid-level container scoped to one workspace."""

    __tablename__ = "folders"

    id = Column(String(36), primary_key=True)
    workspace_id = Column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    icon_id = Column(String(64), nullable=False)
    data = Column(Text, nullable=True)
    in_trash = Column(String(512), nullable=False, default="")
    banner_url = Column(String(512), nullable=True)
    created_at = Column(BigInteger, nullable=False)

    # Relationships
    workspace = relationship("WorkspaceModel", back_populates="folders")
    files = relationship(
        "FileModel",
        back_populates="folder",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("idx_folders_workspace_id", "workspace_id"),
        Index("idx_folders_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, title={self.title})>"


class FileModel(Base):
    """File - leaf document scoped to one folder.

    `workspace_id` is denormalized from the folder for direct lookup.
    """

    __tablename__ = "files"

    id = Column(String(36), primary_key=True)
    folder_id = Column(String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=False)
    workspace_id = Column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    icon_id = Column(String(64), nullable=False)
    data = Column(Text, nullable=True)
    in_trash = Column(String(512), nullable=False, default="")
    banner_url = Column(String(512), nullable=True)
    created_at = Column(BigInteger, nullable=False)

    # Relationships
    folder = relationship("FolderModel", back_populates="files")

    __table_args__ = (
        Index("idx_files_folder_id", "folder_id"),
        Index("idx_files_workspace_id", "workspace_id"),
        Index("idx_files_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<File(id={self.id}, title={self.title})>"


class CollaboratorModel(Base):
    """Collaborator - grants a user access to a workspace they do not own."""

    __tablename__ = "collaborators"

    id = Column(String(36), primary_key=True)
    workspace_id = Column(String(36), ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(BigInteger, nullable=False)

    # Relationships
    workspace = relationship("WorkspaceModel", back_populates="collaborators")
    user = relationship("UserModel")

    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_collaborators_workspace_user"),
        Index("idx_collaborators_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Collaborator(workspace_id={self.workspace_id}, user_id={self.user_id})>"


class SubscriptionModel(Base):
    """Subscription - per-user billing status, read-only for this service."""

    __tablename__ = "subscriptions"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(Enum(*SUBSCRIPTION_STATUSES, name="subscription_status"), nullable=True)
    price_id = Column(String(64), nullable=True)
    quantity = Column(Integer, nullable=True)
    cancel_at_period_end = Column(Boolean, default=False)
    created = Column(BigInteger, nullable=False)
    current_period_start = Column(BigInteger, nullable=False)
    current_period_end = Column(BigInteger, nullable=False)
    ended_at = Column(BigInteger, nullable=True)
    cancel_at = Column(BigInteger, nullable=True)
    canceled_at = Column(BigInteger, nullable=True)
    trial_start = Column(BigInteger, nullable=True)
    trial_end = Column(BigInteger, nullable=True)

    # Relationships
    user = relationship("UserModel", back_populates="subscriptions")

    __table_args__ = (Index("idx_subscriptions_user_id", "user_id"),)

    def __repr__(self) -> str:
        return f"<Subscription(id={self.id}, status={self.status})>"
