from sqlalchemy import (
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

from .types import UTCDateTime, utcnow

Base = declarative_base()
metadata = Base.metadata


BOOKING_STATUSES = ("pending", "confirmed", "completed", "cancelled", "no_show")
# Only these statuses occupy the practitioner's calendar
ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")


class Employees(Base):
    __tablename__ = 'employees'

    full_name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    bookings = relationship('Bookings', back_populates='employee')
    blocks = relationship('BookingBlocks', back_populates='employee')


class ClinicSettings(Base):
    __tablename__ = 'clinic_settings'

    slot_minutes = Column(Integer, nullable=False, server_default=text('15'))
    booking_window_days = Column(Integer, nullable=False, server_default=text('31'))
    workday_start = Column(Text, nullable=False, server_default=text("'16:00'"))
    workday_end = Column(Text, nullable=False, server_default=text("'21:00'"))
    id = Column(Integer, primary_key=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)


class Services(Base):
    __tablename__ = 'services'

    name = Column(Text, nullable=False)
    kind = Column(Enum('single', 'package', name='service_kind'), nullable=False, server_default=text("'single'"))
    price = Column(Integer, nullable=False)  # RSD, integer
    duration_min = Column(Integer, nullable=False)
    supports_ml = Column(Integer, nullable=False, server_default=text('0'))
    max_ml = Column(Integer, nullable=False, server_default=text('1'))
    extra_ml_discount_percent = Column(Integer, nullable=False, server_default=text('0'))
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    color_code = Column(Text)

    promotions = relationship('ServicePromotions', back_populates='service')
    package_items = relationship(
        'ServicePackageItems',
        back_populates='package_service',
        foreign_keys='ServicePackageItems.package_service_id',
    )


class ServicePackageItems(Base):
    __tablename__ = 'service_package_items'
    __table_args__ = (
        UniqueConstraint('package_service_id', 'service_id'),
    )

    package_service_id = Column(ForeignKey('services.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id', ondelete='RESTRICT'), nullable=False)
    quantity = Column(Integer, nullable=False, server_default=text('1'))
    sort_order = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)

    package_service = relationship('Services', back_populates='package_items', foreign_keys=[package_service_id])
    service = relationship('Services', foreign_keys=[service_id])


class ServicePromotions(Base):
    __tablename__ = 'service_promotions'

    service_id = Column(ForeignKey('services.id', ondelete='CASCADE'), nullable=False)
    title = Column(Text, nullable=False)
    promo_price = Column(Integer, nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    id = Column(Integer, primary_key=True)
    starts_at = Column(UTCDateTime)  # NULL = open start
    ends_at = Column(UTCDateTime)  # NULL = open end
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    service = relationship('Services', back_populates='promotions')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        CheckConstraint('starts_at < ends_at', name='bookings_interval_check'),
        Index('bookings_employee_starts_idx', 'employee_id', 'starts_at'),
    )

    user_id = Column(Integer, nullable=False, index=True)  # identity owned by the auth gateway
    employee_id = Column(ForeignKey('employees.id', ondelete='RESTRICT'), nullable=False)
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    total_price = Column(Integer, nullable=False)
    total_duration_min = Column(Integer, nullable=False)
    id = Column(Integer, primary_key=True)
    notes = Column(Text)
    cancel_reason = Column(Text)
    cancelled_at = Column(UTCDateTime)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    employee = relationship('Employees', back_populates='bookings')
    items = relationship('BookingItems', back_populates='booking', cascade='all, delete-orphan')
    status_log = relationship('BookingStatusLog', back_populates='booking', cascade='all, delete-orphan')


class BookingItems(Base):
    __tablename__ = 'booking_items'

    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    service_id = Column(ForeignKey('services.id', ondelete='RESTRICT'), nullable=False)
    quantity = Column(Integer, nullable=False, server_default=text('1'))
    unit_label = Column(Text, nullable=False, server_default=text("'kom'"))
    service_name_snapshot = Column(Text, nullable=False)
    price_snapshot = Column(Integer, nullable=False)
    regular_price_snapshot = Column(Integer, nullable=False)
    duration_min_snapshot = Column(Integer, nullable=False)
    used_promotion = Column(Integer, nullable=False, server_default=text('0'))
    id = Column(Integer, primary_key=True)
    source_package_service_id = Column(ForeignKey('services.id', ondelete='SET NULL'))

    booking = relationship('Bookings', back_populates='items')


class BookingStatusLog(Base):
    __tablename__ = 'booking_status_log'

    booking_id = Column(ForeignKey('bookings.id', ondelete='CASCADE'), nullable=False)
    next_status = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    previous_status = Column(Text)
    changed_by_user_id = Column(Integer)
    note = Column(Text)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    booking = relationship('Bookings', back_populates='status_log')


class BookingBlocks(Base):
    __tablename__ = 'booking_blocks'
    __table_args__ = (
        CheckConstraint('starts_at < ends_at', name='booking_blocks_interval_check'),
        Index('booking_blocks_employee_starts_idx', 'employee_id', 'starts_at'),
    )

    employee_id = Column(ForeignKey('employees.id', ondelete='RESTRICT'), nullable=False)
    starts_at = Column(UTCDateTime, nullable=False)
    ends_at = Column(UTCDateTime, nullable=False)
    duration_min = Column(Integer, nullable=False)
    id = Column(Integer, primary_key=True)
    note = Column(Text)
    created_by_user_id = Column(Integer)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    employee = relationship('Employees', back_populates='blocks')
