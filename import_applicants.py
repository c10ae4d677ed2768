#!/usr/bin/env python3
import json
import sys

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from portal.config.config import settings
from portal.config.logger import logger
from portal.infrastructure.db.models import Base
from portal.infrastructure.db.repositories.applicant_repository import ApplicantRepository
from portal.infrastructure.parser.applicant_document_parser import parse_applicant_document


def main(path: str = "applicants_export.json") -> None:
    # 1) database
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    engine = create_engine(settings.database_url, echo=settings.db_echo, future=True)
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, future=True)
    session = Session()
    repo = ApplicantRepository(session)

    # 2) export: {"users": [...], "applications": [...]}
    with open(path, encoding="utf-8") as json_file:
        payload = json.load(json_file)
    users = payload.get("users", [])
    applications = {
        str(doc.get("userId")): doc
        for doc in payload.get("applications", [])
        if doc.get("userId")
    }

    # 3) documents → domain records
    records = []
    for user_doc in users:
        record = parse_applicant_document(user_doc, applications.get(str(user_doc.get("id"))))
        if not record.id:
            logger.warning("User document without id skipped: %s", user_doc.get("email"))
            continue
        records.append(record)

    # 4) store
    try:
        n = repo.add_applicants_bulk(records)
        repo.commit()
    except SQLAlchemyError:
        logger.exception("Import failed, rolling back")
        repo.rollback()
        sys.exit(1)
    finally:
        session.close()

    logger.info("✅ Imported %d applicants from %s", n, path)


if __name__ == "__main__":
    main(*sys.argv[1:2])
