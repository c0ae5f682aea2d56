from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

# Statuses that hold their slot; the partial unique index below relies on it
ACTIVE_ORDER_STATUSES_SQL = "status IN ('NEW', 'ACCEPTED', 'DONE')"


class Users(Base):
    __tablename__ = 'users'
    __table_args__ = (
        CheckConstraint("role IN ('client', 'master')", name='ck_users_role'),
    )

    role = Column(Text, nullable=False)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    services = relationship('Services', back_populates='master')
    availability = relationship('Availability', back_populates='master', uselist=False)


class Categories(Base):
    __tablename__ = 'categories'

    name = Column(Text, nullable=False, unique=True)
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    services = relationship('Services', back_populates='category')


class Services(Base):
    __tablename__ = 'services'
    __table_args__ = (
        CheckConstraint('price > 0', name='ck_services_price'),
    )

    master_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category_id = Column(ForeignKey('categories.id', ondelete='CASCADE'))
    title = Column(Text, nullable=False)
    price = Column(Integer, nullable=False)
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    master = relationship('Users', back_populates='services')
    category = relationship('Categories', back_populates='services')


class Availability(Base):
    __tablename__ = 'availability'

    master_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    slot_minutes = Column(Integer, nullable=False, server_default=text('30'))
    week_template = Column(Text, nullable=False, server_default=text("'{}'"))
    exceptions = Column(Text, nullable=False, server_default=text("'{}'"))
    id = Column(Integer, primary_key=True)
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))

    master = relationship('Users', back_populates='availability')


class Orders(Base):
    __tablename__ = 'orders'
    __table_args__ = (
        CheckConstraint(
            "status IN ('NEW', 'ACCEPTED', 'REJECTED', 'DONE', 'CANCELLED')",
            name='ck_orders_status',
        ),
        Index(
            'ux_orders_master_active_slot',
            'master_id',
            'desired_at',
            unique=True,
            sqlite_where=text(ACTIVE_ORDER_STATUSES_SQL),
            postgresql_where=text(ACTIVE_ORDER_STATUSES_SQL),
        ),
        Index('ix_orders_client', 'client_id'),
    )

    service_id = Column(ForeignKey('services.id', ondelete='CASCADE'), nullable=False)
    master_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    client_id = Column(ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    desired_at = Column(Text, nullable=False)  # "YYYY-MM-DDTHH:MM:SS.000Z"
    status = Column(Text, nullable=False, server_default=text("'NEW'"))
    status_changed_at = Column(Text, nullable=False)
    created_at = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    comment = Column(Text)
    rejection_reason = Column(Text)

    service = relationship('Services')
    master = relationship('Users', foreign_keys=[master_id])
    client = relationship('Users', foreign_keys=[client_id])
