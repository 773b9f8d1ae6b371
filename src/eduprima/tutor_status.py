"""Tutor status catalog.

Canonical status codes are lower-case; the status API stores them
upper-cased. Helpers accept either casing and fall back to "unknown".
"""

# Width of tutor_status.status; longer labels are rejected as input errors.
STATUS_MAX_LENGTH = 50

RECRUITMENT_STATUSES = (
    "registration",
    "learning_materials",
    "examination",
    "exam_verification",
    "data_completion",
    "waiting_students",
)
ACTIVE_STATUSES = ("active",)
MANAGEMENT_STATUSES = ("inactive", "suspended", "blacklisted")
SPECIAL_STATUSES = ("on_trial", "additional_screening")
LEGACY_STATUSES = ("pending", "verified", "unknown")

TUTOR_STATUS_OPTIONS = (
    RECRUITMENT_STATUSES
    + ACTIVE_STATUSES
    + MANAGEMENT_STATUSES
    + SPECIAL_STATUSES
    + LEGACY_STATUSES
)

TUTOR_STATUS_LABELS = {
    "registration": "Registrasi - Upload berkas & data",
    "learning_materials": "Belajar Materi & SOP",
    "examination": "Ujian Tutor Online",
    "exam_verification": "Verifikasi Hasil Ujian",
    "data_completion": "Melengkapi Data Tutor",
    "waiting_students": "Menunggu Siswa Pertama",
    "active": "Aktif - Mengajar",
    "inactive": "Tidak Aktif",
    "suspended": "Ditangguhkan",
    "blacklisted": "Blacklist",
    "on_trial": "Masa Percobaan",
    "additional_screening": "Additional Screening",
    "pending": "Pending",
    "verified": "Verified",
    "unknown": "Unknown",
}


def normalize_status(status: str | None) -> str:
    """Canonical lower-case code for `status`, or "unknown"."""
    code = (status or "").strip().lower()
    return code if code in TUTOR_STATUS_LABELS else "unknown"


def storage_value(status: str) -> str:
    """Form persisted in tutor_status.status (upper-case)."""
    return status.strip().upper()


def status_label(status: str | None) -> str:
    return TUTOR_STATUS_LABELS[normalize_status(status)]


def is_recruitment_status(status: str | None) -> bool:
    return normalize_status(status) in RECRUITMENT_STATUSES


def is_active_status(status: str | None) -> bool:
    return normalize_status(status) in ACTIVE_STATUSES


def is_inactive_status(status: str | None) -> bool:
    return normalize_status(status) in MANAGEMENT_STATUSES


def status_options() -> list[dict[str, str]]:
    """Dropdown options for the dashboard forms."""
    return [
        {"value": code, "label": TUTOR_STATUS_LABELS[code]}
        for code in TUTOR_STATUS_OPTIONS
    ]
