from typing import List

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

Base = declarative_base()
metadata = Base.metadata

APPOINTMENT_STATUSES = ("pending", "confirmed", "done", "cancelled")
# Statuses that no longer need a reminder
CLOSED_STATUSES = ("done", "cancelled")


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("ix_users_email", "email", unique=True),)

    id = mapped_column(Integer, primary_key=True)
    email = mapped_column(String(255), nullable=False)
    password_hash = mapped_column(String(72), nullable=False)
    created_at = mapped_column(
        DateTime, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    clients: Mapped[List["Client"]] = relationship(
        "Client",
        uselist=True,
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    services: Mapped[List["Service"]] = relationship(
        "Service",
        uselist=True,
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    products: Mapped[List["Product"]] = relationship(
        "Product",
        uselist=True,
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    appointments: Mapped[List["Appointment"]] = relationship(
        "Appointment",
        uselist=True,
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Client(Base):
    __tablename__ = "clients"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_clients_points"),
        Index("ix_clients_user_id", "user_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    user_id = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name = mapped_column(String(120), nullable=False)
    phone = mapped_column(String(40), nullable=False)
    email = mapped_column(String(255))
    instagram = mapped_column(String(120))
    points = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    allergies = mapped_column(Text)
    preferences = mapped_column(Text)

    user: Mapped["User"] = relationship("User", back_populates="clients")
    appointments: Mapped[List["Appointment"]] = relationship(
        "Appointment",
        uselist=True,
        back_populates="client",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Service(Base):
    __tablename__ = "services"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_services_price"),
        CheckConstraint("duration >= 1", name="ck_services_duration"),
        Index("ix_services_user_id", "user_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    user_id = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name = mapped_column(String(120), nullable=False)
    description = mapped_column(Text)
    price = mapped_column(Float, nullable=False)
    duration = mapped_column(Integer, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="services")
    appointments: Mapped[List["Appointment"]] = relationship(
        "Appointment",
        uselist=True,
        back_populates="service",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity"),
        CheckConstraint("min_quantity >= 0", name="ck_products_min_quantity"),
        Index("ix_products_user_id", "user_id"),
    )

    id = mapped_column(Integer, primary_key=True)
    user_id = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name = mapped_column(String(120), nullable=False)
    brand = mapped_column(String(120))
    category = mapped_column(String(60), nullable=False)
    color_hex = mapped_column(String(9))
    quantity = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    min_quantity = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    user: Mapped["User"] = relationship("User", back_populates="products")

    @property
    def needs_restock(self) -> bool:
        return self.quantity <= self.min_quantity


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'done', 'cancelled')",
            name="ck_appointments_status",
        ),
        Index("ix_appointments_user_id", "user_id"),
        Index("ix_appointments_client_status", "client_id", "status", "date_time"),
    )

    id = mapped_column(Integer, primary_key=True)
    user_id = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    client_id = mapped_column(
        Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )
    service_id = mapped_column(
        Integer, ForeignKey("services.id", ondelete="CASCADE"), nullable=False
    )
    date_time = mapped_column(DateTime, nullable=False)
    status = mapped_column(
        String(16), nullable=False, default="pending", server_default=text("'pending'")
    )
    notes = mapped_column(Text)

    user: Mapped["User"] = relationship("User", back_populates="appointments")
    client: Mapped["Client"] = relationship("Client", back_populates="appointments")
    service: Mapped["Service"] = relationship("Service", back_populates="appointments")
