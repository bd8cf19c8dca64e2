from cardintake.services.pairing.engine import PairingError, create_manual_pair, get_batch_pairing_status, pair_batch
from cardintake.services.pairing.strategies import UploadRef, match_by_filename, match_by_sequence

__all__ = [
    "pair_batch",
    "create_manual_pair",
    "get_batch_pairing_status",
    "PairingError",
    "UploadRef",
    "match_by_filename",
    "match_by_sequence",
]
