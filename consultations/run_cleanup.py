"""Run the consultation cleanup and the missed-meeting sweep once.

Usage:
    python -m consultations.run_cleanup
"""
import json
import logging
import sys

from consultations.core.exceptions import PersistenceFailure
from consultations.database import SessionLocal
from consultations.models import profile  # noqa: F401
from consultations.services.cleanup import run_consultation_cleanup
from consultations.services.meeting_status import update_meeting_statuses


def main() -> None:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    db = SessionLocal()
    try:
        missed = update_meeting_statuses(db)
        result = run_consultation_cleanup(db)
    except PersistenceFailure as exc:
        print('Consultation cleanup failed:', exc.message, file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()

    result['meetings_marked_missed'] = missed
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
