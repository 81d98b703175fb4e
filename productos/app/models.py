from decimal import Decimal
from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

CENTS = Decimal("0.01")

class Money(TypeDecorator):
    """
    NUMERIC(18, 2) with two-place rounding on every backend.
    SQLite has no exact decimal storage, so there the value is kept as text.
    """
    impl = Numeric(18, 2)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(40))
        return dialect.type_descriptor(Numeric(18, 2, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = Decimal(value).quantize(CENTS)
        return str(value) if dialect.name == "sqlite" else value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value).quantize(CENTS)

class Base(DeclarativeBase):
    pass

class Producto(Base):
    __tablename__ = "productos"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    price: Mapped[Decimal] = mapped_column(Money(), nullable=False)
    stock: Mapped[int] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"Producto(id={self.id!r}, name={self.name!r})"
