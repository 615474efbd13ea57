"""
Ingestion pipeline — reads bucket files, validates, upserts reference data
(boats, staff, members) to DB.
Idempotent: same input = same hash = skips re-insert.
"""
import json
import hashlib
import logging
import os
from pathlib import Path

from sqlalchemy.orm import Session

from boatdesk.models import Boat, Staff, Member, IngestionRun
from boatdesk.ingestion.schemas import BoatSchema, StaffSchema, MemberSchema

logger = logging.getLogger(__name__)

BUCKET_DIR = Path(os.getenv("BUCKET_DIR", "data/bucket"))

# entity → (bucket file, ORM model, schema), in load order
ENTITIES = {
    "boats": ("boats.json", Boat, BoatSchema),
    "staff": ("staff.json", Staff, StaffSchema),
    "members": ("members.json", Member, MemberSchema),
}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _hash_file(path: Path) -> str:
    return hashlib.md5(path.read_bytes()).hexdigest()

def _bucket_hash(bucket_dir: Path) -> str:
    """Single hash of all bucket files combined."""
    combined = "".join(
        _hash_file(f) for f in sorted(bucket_dir.iterdir()) if f.is_file()
    )
    return hashlib.md5(combined.encode()).hexdigest()

def _load_json(bucket_dir: Path, filename: str) -> list:
    path = bucket_dir / filename
    if not path.exists():
        return []
    return json.loads(path.read_text(encoding="utf-8"))


def _upsert(db: Session, bucket_dir: Path, filename: str, model, schema) -> dict:
    records = [schema(**r) for r in _load_json(bucket_dir, filename)]  # validates
    diff = {"upserted": [], "unchanged": []}

    for r in records:
        existing = db.get(model, r.id)
        data = r.model_dump()

        if existing:
            changed = {k: v for k, v in data.items() if getattr(existing, k) != v}
            if changed:
                for k, v in changed.items():
                    setattr(existing, k, v)
                diff["upserted"].append(r.id)
            else:
                diff["unchanged"].append(r.id)
        else:
            db.add(model(**data))
            diff["upserted"].append(r.id)

    return diff


# ── Main entry point ──────────────────────────────────────────────────────────

def run_ingestion(db: Session, force: bool = False, bucket_dir: Path = None) -> dict:
    """
    Run full ingestion. Skips if bucket hash unchanged (idempotent).
    Set force=True to re-ingest regardless.
    """
    bucket_dir = Path(bucket_dir) if bucket_dir is not None else BUCKET_DIR
    bucket_hash = _bucket_hash(bucket_dir)

    # Idempotency check
    if not force:
        last_run = (
            db.query(IngestionRun)
            .filter(IngestionRun.status == "success")
            .order_by(IngestionRun.id.desc())
            .first()
        )
        if last_run and last_run.source_hash == bucket_hash:
            logger.info("Ingestion skipped, bucket unchanged (%s)", bucket_hash)
            return {
                "status": "skipped",
                "reason": "bucket unchanged",
                "hash": bucket_hash
            }

    diff_summary = {}
    try:
        for name, (filename, model, schema) in ENTITIES.items():
            diff_summary[name] = _upsert(db, bucket_dir, filename, model, schema)

        db.add(IngestionRun(
            source_hash=bucket_hash,
            status="success",
            diff_summary=diff_summary
        ))
        db.commit()

    except Exception as e:
        db.rollback()
        db.add(IngestionRun(
            source_hash=bucket_hash,
            status="failed",
            diff_summary={"error": str(e)}
        ))
        db.commit()
        logger.error("Ingestion failed: %s", e)
        raise

    logger.info("Ingestion done: %s", {k: len(v["upserted"]) for k, v in diff_summary.items()})
    return {"status": "success", "hash": bucket_hash, "diff": diff_summary}
