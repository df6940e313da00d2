from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

"""MemberRecord domain model and Gender enum.

MemberRecord is the canonical entity built by the row decoder from one CSV
row. It lives in the batch buffer until the next flush and is discarded
afterwards, whatever the insert outcome.
"""

__all__ = [
    "Gender",
    "MemberRecord",
    "MEMBER_COLUMNS",
    "STATUS_ACTIVE",
    "member_columns",
]

STATUS_ACTIVE = "active"


class Gender(Enum):
    """Gender code stored in ``jenis_kelamin``.

    Unknown / unrecognised input is represented by ``None`` on the record,
    which is persisted as SQL NULL.
    """
    MALE = "L"  # Laki-laki
    FEMALE = "P"  # Perempuan


# attribute -> table column, in INSERT order
MEMBER_COLUMNS: dict[str, str] = {
    "id": "id",
    "nik": "nik",
    "no_kta": "no_kta",
    "full_name": "nama_lengkap",
    "birth_place": "tempat_lahir",
    "birth_date": "tanggal_lahir",
    "gender": "jenis_kelamin",
    "religion": "agama",
    "blood_type": "golongan_darah",
    "marital_status": "status_perkawinan",
    "address": "alamat_ktp",
    "rt": "rt_ktp",
    "rw": "rw_ktp",
    "postal_code": "kode_pos_ktp",
    "photo_path": "foto_formal",
    "id_scan_path": "scan_ktp",
    "registration_date": "tanggal_daftar",
    "created_at": "created_at",
    "created_by": "created_by",
    "status": "kta_status",
    "verified": "is_verified",
}


def member_columns() -> list[str]:
    return list(MEMBER_COLUMNS.values())


@dataclass(frozen=True)
class MemberRecord:
    """Canonical membership record (one row of ``keanggotaan``).

    ``nik`` and ``no_kta`` are always non-empty; the decoder skips rows where
    either is missing. ``no_kta`` uniqueness is enforced by the table, the
    pipeline only reacts to the conflict.
    """
    id: str  # UUIDv7, time ordered
    nik: str
    no_kta: str
    registration_date: datetime
    created_at: datetime
    full_name: str | None = None
    birth_place: str | None = None
    birth_date: date | None = None
    gender: Gender | None = None
    religion: str | None = None
    blood_type: str | None = None
    marital_status: str | None = None
    address: str | None = None
    rt: str | None = None
    rw: str | None = None
    postal_code: str | None = None
    photo_path: str | None = None
    id_scan_path: str | None = None
    created_by: str = "system"
    status: str = STATUS_ACTIVE
    verified: bool = False
    row_number: int = -1  # source record ordinal, not persisted

    def to_row(self) -> tuple[Any, ...]:
        """Values in MEMBER_COLUMNS order, ready for execute_values."""
        values: list[Any] = []
        for attr in MEMBER_COLUMNS:
            value = getattr(self, attr)
            if isinstance(value, Gender):
                value = value.value
            values.append(value)
        return tuple(values)
