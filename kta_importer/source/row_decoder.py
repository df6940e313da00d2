from __future__ import annotations

from datetime import UTC, datetime

from uuid6 import uuid7

from ..models.member_record import MemberRecord
from ..models.row_data import RowData
from .normalize import normalize_gender, nullable_str, parse_date, parse_datetime

"""Row decoder: RowData -> MemberRecord.

Header names are matched exactly against the export format of the
membership system. A row without NIK or card number is not an error: the
decoder returns None and the caller counts it as skipped.
"""

__all__ = [
    "COL_NIK",
    "COL_NO_KTA",
    "REQUIRED_COLUMNS",
    "SOURCE_COLUMNS",
    "decode_row",
]

COL_NIK = "NIK"
COL_NO_KTA = "No. KTA"
COL_FULL_NAME = "Nama Lengkap"
COL_BIRTH_PLACE = "Kota Lahir"
COL_BIRTH_DATE = "Tgl Lahir"
COL_GENDER = "Jenis Kelamin"
COL_RELIGION = "Agama"
COL_BLOOD_TYPE = "Golongan Darah"
COL_MARITAL_STATUS = "Status"
COL_ADDRESS = "Alamat"
COL_RT = "RT"
COL_RW = "RW"
COL_POSTAL_CODE = "Kode Pos"
COL_PHOTO = "Photo"
COL_ID_SCAN = "Scan KTP"
COL_REGISTERED = "tglentri"
COL_CREATED_BY = "users"

REQUIRED_COLUMNS = (COL_NIK, COL_NO_KTA)

SOURCE_COLUMNS = (
    COL_NIK,
    COL_NO_KTA,
    COL_FULL_NAME,
    COL_BIRTH_PLACE,
    COL_BIRTH_DATE,
    COL_GENDER,
    COL_RELIGION,
    COL_BLOOD_TYPE,
    COL_MARITAL_STATUS,
    COL_ADDRESS,
    COL_RT,
    COL_RW,
    COL_POSTAL_CODE,
    COL_PHOTO,
    COL_ID_SCAN,
    COL_REGISTERED,
    COL_CREATED_BY,
)


def decode_row(
    row: RowData,
    *,
    created_by_default: str = "system",
    now: datetime | None = None,
) -> MemberRecord | None:
    """Build a MemberRecord from one raw row, or None when NIK / No. KTA is missing.

    ``now`` stamps created_at and is the fallback registration date when
    ``tglentri`` is empty or unparseable (birth date stays NULL instead).
    """
    nik = nullable_str(row.get(COL_NIK))
    no_kta = nullable_str(row.get(COL_NO_KTA))
    if nik is None or no_kta is None:
        return None

    if now is None:
        now = datetime.now(UTC)

    return MemberRecord(
        id=str(uuid7()),
        nik=nik,
        no_kta=no_kta,
        full_name=nullable_str(row.get(COL_FULL_NAME)),
        birth_place=nullable_str(row.get(COL_BIRTH_PLACE)),
        birth_date=parse_date(row.get(COL_BIRTH_DATE)),
        gender=normalize_gender(row.get(COL_GENDER)),
        religion=nullable_str(row.get(COL_RELIGION)),
        blood_type=nullable_str(row.get(COL_BLOOD_TYPE)),
        marital_status=nullable_str(row.get(COL_MARITAL_STATUS)),
        address=nullable_str(row.get(COL_ADDRESS)),
        rt=nullable_str(row.get(COL_RT)),
        rw=nullable_str(row.get(COL_RW)),
        postal_code=nullable_str(row.get(COL_POSTAL_CODE)),
        photo_path=nullable_str(row.get(COL_PHOTO)),
        id_scan_path=nullable_str(row.get(COL_ID_SCAN)),
        registration_date=parse_datetime(row.get(COL_REGISTERED)) or now,
        created_at=now,
        created_by=nullable_str(row.get(COL_CREATED_BY)) or created_by_default,
        row_number=row.row_number,
    )
