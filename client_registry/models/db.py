"""SQLAlchemy database models."""

from datetime import date

from sqlalchemy import Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import declarative_base, relationship

# Create the declarative base
Base = declarative_base()


class Client(Base):
    """Model representing a client record.

    The optional ``photo`` column holds the generated storage name of the
    client's uploaded photo, or None when no photo was attached.
    """
    __tablename__ = "clientes"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    created_at = Column(Date, nullable=False, default=date.today)

    # Generated storage name of the uploaded photo
    photo = Column(String(255), nullable=True)

    invoices = relationship(
        "Invoice",
        back_populates="client",
        cascade="all, delete-orphan",
        order_by="Invoice.id",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, email={self.email}, photo={self.photo})>"


class Invoice(Base):
    """Model representing an invoice issued to a client.

    Invoices are read-only from the client management screens; they are
    loaded together with their client on the detail view.
    """
    __tablename__ = "facturas"

    id = Column(Integer, primary_key=True, autoincrement=True)

    description = Column(String(255), nullable=False)
    observation = Column(String(1000), nullable=True)
    created_at = Column(Date, nullable=False, default=date.today)

    client_id = Column(
        Integer,
        ForeignKey("clientes.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    client = relationship("Client", back_populates="invoices")

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, client_id={self.client_id})>"
