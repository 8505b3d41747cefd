from sqlalchemy.orm import Session
from models.number_sequences import NumberSequence
from utils.clock import today


def next_number(db: Session, prefix: str) -> str:
    """Issue the next document number for today, e.g. PAY-20250315-0001.

    The counter row is read FOR UPDATE inside the caller's transaction, so two
    concurrent requests serialize on it instead of both reading the same count.
    Must be called inside database.transaction().
    """
    key = f"{prefix}-{today().strftime('%Y%m%d')}"
    sequence = db.query(NumberSequence).filter(NumberSequence.key == key).with_for_update().first()
    if sequence is None:
        # First number of the day. A concurrent insert of the same key fails on the
        # primary key and surfaces as ConflictError for the caller to retry.
        sequence = NumberSequence(key=key, last_value=0)
        db.add(sequence)
    sequence.last_value += 1
    db.flush()
    return f"{key}-{sequence.last_value:04d}"
