from .loader import load_aedata, read_aedata, read_inits, records_to_frame, validate_records
from .records import AERecord

__all__ = [
    "AERecord",
    "load_aedata",
    "read_aedata",
    "read_inits",
    "records_to_frame",
    "validate_records",
]
