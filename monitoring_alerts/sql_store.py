"""Relational monitoring store built on SQLAlchemy Core."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    event,
    func,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.sql import and_, insert, or_, select

from .exceptions import DuplicateAlertError
from .models import (
    Alert,
    AlertRecipient,
    AlertType,
    MedicationIntake,
    MedicationSchedule,
    Role,
    Therapy,
)

logger = logging.getLogger(__name__)

# Numeric role codes only exist at the storage boundary.
ROLE_IDS: dict[Role, int] = {Role.ADMIN: 1, Role.DOCTOR: 2, Role.PATIENT: 3}

metadata = MetaData()

users = Table(
    "users", metadata,
    Column("user_id", Integer, primary_key=True),
    Column("first_name", String(100), nullable=False, default=""),
    Column("last_name", String(100), nullable=False, default=""),
    Column("role_id", Integer, nullable=False),
)

patient_doctors = Table(
    "patient_doctors", metadata,
    Column("patient_id", Integer, ForeignKey("users.user_id"), primary_key=True),
    Column("doctor_id", Integer, ForeignKey("users.user_id"), nullable=False),
)

glycemic_measurements = Table(
    "glycemic_measurements", metadata,
    Column("measurement_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=False, index=True),
    Column("measurement_datetime", DateTime, nullable=False),
    Column("value", Numeric(8, 2), nullable=False, default=0),
)

therapies = Table(
    "therapies", metadata,
    Column("therapy_id", Integer, primary_key=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=False, index=True),
    Column("start_date", Date, nullable=False),
    Column("end_date", Date, nullable=True),
)

medication_schedules = Table(
    "medication_schedules", metadata,
    Column("medication_schedule_id", Integer, primary_key=True),
    Column("therapy_id", Integer, ForeignKey("therapies.therapy_id"), nullable=False, index=True),
    Column("daily_intakes", Integer, nullable=True),
    Column("quantity", Numeric(10, 2), nullable=False, default=0),
)

medication_intakes = Table(
    "medication_intakes", metadata,
    Column("intake_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=False),
    Column(
        "medication_schedule_id",
        Integer,
        ForeignKey("medication_schedules.medication_schedule_id"),
        nullable=False,
        index=True,
    ),
    Column("intake_datetime", DateTime, nullable=False),
    Column("expected_quantity_value", Numeric(10, 2), nullable=False, default=0),
)

alert_types = Table(
    "alert_types", metadata,
    Column("alert_type_id", Integer, primary_key=True, autoincrement=True),
    Column("label", String(64), nullable=False, unique=True),
    Column("description", Text, nullable=False, default=""),
)

alerts = Table(
    "alerts", metadata,
    Column("alert_id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=False),
    Column("alert_type_id", Integer, ForeignKey("alert_types.alert_type_id"), nullable=False),
    Column("message", String(500), nullable=False),
    Column("created_at", DateTime, nullable=False),
    Column("created_on", Date, nullable=False),
    UniqueConstraint("user_id", "alert_type_id", "message", "created_on", name="uq_alerts_daily"),
)

alert_recipients = Table(
    "alert_recipients", metadata,
    Column("alert_id", Integer, ForeignKey("alerts.alert_id"), primary_key=True),
    Column("recipient_user_id", Integer, ForeignKey("users.user_id"), primary_key=True),
    Column("is_read", Boolean, nullable=False, default=False),
)


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite gets explicit BEGIN so savepoints behave."""

    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    engine = create_engine(database_url, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


class SqlMonitoringStore:
    """``MonitoringRepository`` over a relational database.

    One connection is held for the lifetime of the store; every write joins
    the current transaction until ``persist`` commits it.
    """

    def __init__(self, engine: Engine | str) -> None:
        self._engine = build_engine(engine) if isinstance(engine, str) else engine
        self._conn: Connection = self._engine.connect()

    def __enter__(self) -> "SqlMonitoringStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection; uncommitted work is rolled back."""

        self._conn.close()

    def create_schema(self) -> None:
        metadata.create_all(self._conn)
        self._conn.commit()

    def persist(self) -> None:
        self._conn.commit()

    # -- population -------------------------------------------------------

    def add_user(self, user_id: int, role: Role, first_name: str = "", last_name: str = "") -> None:
        self._conn.execute(
            insert(users).values(
                user_id=user_id,
                first_name=first_name,
                last_name=last_name,
                role_id=ROLE_IDS[Role(role)],
            )
        )

    def assign_doctor(self, patient_id: int, doctor_id: int) -> None:
        self._conn.execute(insert(patient_doctors).values(patient_id=patient_id, doctor_id=doctor_id))

    def add_measurement(self, user_id: int, measured_at: datetime, value: float = 0.0) -> None:
        self._conn.execute(
            insert(glycemic_measurements).values(
                user_id=user_id, measurement_datetime=measured_at, value=Decimal(str(value))
            )
        )

    def add_therapy(self, therapy: Therapy) -> None:
        self._conn.execute(
            insert(therapies).values(
                therapy_id=therapy.therapy_id,
                user_id=therapy.user_id,
                start_date=therapy.start_date,
                end_date=therapy.end_date,
            )
        )

    def add_schedule(self, schedule: MedicationSchedule) -> None:
        self._conn.execute(
            insert(medication_schedules).values(
                medication_schedule_id=schedule.medication_schedule_id,
                therapy_id=schedule.therapy_id,
                daily_intakes=schedule.daily_intakes,
                quantity=Decimal(schedule.quantity),
            )
        )

    def add_intake(
        self,
        user_id: int,
        schedule_id: int,
        taken_at: datetime,
        quantity: Decimal | int | str,
    ) -> None:
        self._conn.execute(
            insert(medication_intakes).values(
                user_id=user_id,
                medication_schedule_id=schedule_id,
                intake_datetime=taken_at,
                expected_quantity_value=Decimal(str(quantity)),
            )
        )

    # -- PatientDirectory -------------------------------------------------

    def list_active_patients(self) -> Sequence[int]:
        stmt = select(users.c.user_id).where(users.c.role_id == ROLE_IDS[Role.PATIENT]).order_by(users.c.user_id)
        return list(self._conn.execute(stmt).scalars())

    def get_assigned_doctor(self, patient_id: int) -> Optional[int]:
        stmt = select(patient_doctors.c.doctor_id).where(patient_doctors.c.patient_id == patient_id)
        return self._conn.execute(stmt).scalar_one_or_none()

    def display_name(self, user_id: int) -> Optional[str]:
        row = self._conn.execute(
            select(users.c.first_name, users.c.last_name).where(users.c.user_id == user_id)
        ).first()
        if row is None:
            return None
        name = f"{row.first_name} {row.last_name}".strip()
        return name or None

    # -- MeasurementRepository --------------------------------------------

    def count_measurements(self, patient_id: int, day: date) -> int:
        start, end = _day_bounds(day)
        stmt = select(func.count()).select_from(glycemic_measurements).where(
            glycemic_measurements.c.user_id == patient_id,
            glycemic_measurements.c.measurement_datetime >= start,
            glycemic_measurements.c.measurement_datetime < end,
        )
        return int(self._conn.execute(stmt).scalar_one())

    # -- TherapyRepository ------------------------------------------------

    def list_active_therapies(self, patient_id: int, day: date) -> Sequence[Therapy]:
        stmt = (
            select(therapies)
            .where(
                therapies.c.user_id == patient_id,
                therapies.c.start_date <= day,
                or_(therapies.c.end_date.is_(None), therapies.c.end_date >= day),
            )
            .order_by(therapies.c.therapy_id)
        )
        return [
            Therapy(row.therapy_id, row.user_id, row.start_date, row.end_date)
            for row in self._conn.execute(stmt)
        ]

    def list_schedules(self, therapy_id: int) -> Sequence[MedicationSchedule]:
        stmt = (
            select(medication_schedules)
            .where(medication_schedules.c.therapy_id == therapy_id)
            .order_by(medication_schedules.c.medication_schedule_id)
        )
        return [
            MedicationSchedule(
                row.medication_schedule_id,
                row.therapy_id,
                row.daily_intakes,
                Decimal(row.quantity),
            )
            for row in self._conn.execute(stmt)
        ]

    def list_intakes(self, patient_id: int, schedule_id: int, day: date) -> Sequence[MedicationIntake]:
        start, end = _day_bounds(day)
        stmt = select(medication_intakes).where(
            medication_intakes.c.user_id == patient_id,
            medication_intakes.c.medication_schedule_id == schedule_id,
            medication_intakes.c.intake_datetime >= start,
            medication_intakes.c.intake_datetime < end,
        )
        return [
            MedicationIntake(
                row.user_id,
                row.medication_schedule_id,
                row.intake_datetime,
                Decimal(row.expected_quantity_value),
            )
            for row in self._conn.execute(stmt)
        ]

    # -- AlertStore -------------------------------------------------------

    def resolve_alert_type(self, label: str) -> Optional[int]:
        stmt = select(alert_types.c.alert_type_id).where(alert_types.c.label == label)
        return self._conn.execute(stmt).scalar_one_or_none()

    def add_alert_type(self, label: str, description: str = "") -> int:
        result = self._conn.execute(insert(alert_types).values(label=label, description=description))
        return int(result.inserted_primary_key[0])

    def list_alert_types(self) -> Sequence[AlertType]:
        stmt = select(alert_types).order_by(alert_types.c.alert_type_id)
        return [AlertType(row.alert_type_id, row.label, row.description) for row in self._conn.execute(stmt)]

    def alert_exists(self, user_id: int, alert_type_id: int, message: str, day: date) -> bool:
        stmt = select(alerts.c.alert_id).where(
            and_(
                alerts.c.user_id == user_id,
                alerts.c.alert_type_id == alert_type_id,
                alerts.c.message == message,
                alerts.c.created_on == day,
            )
        )
        return self._conn.execute(stmt.limit(1)).first() is not None

    def insert_alert(self, user_id: int, alert_type_id: int, message: str, timestamp: datetime) -> int:
        """Insert an alert; raise ``DuplicateAlertError`` when the same alert already exists for the day."""

        try:
            with self._conn.begin_nested():
                result = self._conn.execute(
                    insert(alerts).values(
                        user_id=user_id,
                        alert_type_id=alert_type_id,
                        message=message,
                        created_at=timestamp,
                        created_on=timestamp.date(),
                    )
                )
        except IntegrityError as exc:
            # The savepoint is rolled back; only the daily uniqueness key counts as a duplicate.
            if self.alert_exists(user_id, alert_type_id, message, timestamp.date()):
                raise DuplicateAlertError(user_id, alert_type_id, message) from exc
            raise
        return int(result.inserted_primary_key[0])

    def insert_recipient(self, alert_id: int, recipient_user_id: int) -> None:
        self._conn.execute(
            insert(alert_recipients).values(alert_id=alert_id, recipient_user_id=recipient_user_id, is_read=False)
        )

    def alerts_created_on(self, day: date) -> Sequence[Alert]:
        stmt = select(alerts).where(alerts.c.created_on == day).order_by(alerts.c.alert_id)
        return [
            Alert(row.alert_id, row.user_id, row.alert_type_id, row.message, row.created_at)
            for row in self._conn.execute(stmt)
        ]

    def list_recipients(self, alert_id: int) -> Sequence[AlertRecipient]:
        stmt = (
            select(alert_recipients)
            .where(alert_recipients.c.alert_id == alert_id)
            .order_by(alert_recipients.c.recipient_user_id)
        )
        return [
            AlertRecipient(row.alert_id, row.recipient_user_id, bool(row.is_read))
            for row in self._conn.execute(stmt)
        ]
