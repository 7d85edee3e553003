from __future__ import annotations
import argparse
import logging
import random
import string
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import date, timedelta
from typing import Optional

from tqdm import tqdm

from .config import RateLimit, configure_logging, load_client_config
from .crpt_api import CrptApi
from .errors import CrptApiError
from .models import Description, Document, Product

logger = logging.getLogger(__name__)


def _inn(rng: random.Random) -> str:
    return "".join(rng.choices(string.digits, k=10))


def random_document(rng: Optional[random.Random] = None) -> Document:
    """Throwaway document with plausible-looking fields, for smoke runs against a sandbox."""
    rng = rng or random.Random()
    today = date.today()
    producer = _inn(rng)
    return Document(
        description=Description(participant_inn=_inn(rng)),
        doc_id=str(uuid.uuid4()),
        doc_status="DRAFT",
        doc_type="LP_INTRODUCE_GOODS",
        import_request=False,
        owner_inn=producer,
        participant_inn=producer,
        producer_inn=producer,
        production_date=today - timedelta(days=rng.randint(0, 30)),
        production_type="OWN_PRODUCTION",
        products=[
            Product(
                owner_inn=producer,
                producer_inn=producer,
                production_date=today,
                tnved_code="".join(rng.choices(string.digits, k=10)),
                uit_code=uuid.uuid4().hex,
            )
            for _ in range(rng.randint(1, 3))
        ],
        reg_date=today,
        reg_number=str(rng.randint(1, 10**6)),
    )


def send_all(api: CrptApi, docs: list[Document], threads: int) -> int:
    """Submit every document from its own worker; returns the number of failed calls."""
    failed = 0
    with ThreadPoolExecutor(max_workers=threads) as pool:
        futures = {pool.submit(api.create_document, d): d for d in docs}
        for fut in tqdm(as_completed(futures), total=len(futures), desc="createDocument"):
            doc = futures[fut]
            try:
                resp = fut.result()
            except CrptApiError as e:
                failed += 1
                logger.error("%s: %s", doc.doc_id, e, exc_info=e)
                continue
            if not resp.ok:
                failed += 1
                logger.warning("%s rejected: %s %s", doc.doc_id, resp.error.code, resp.error.message)
    return failed


def main():
    ap = argparse.ArgumentParser(description="Send generated documents to the CRPT API concurrently")
    ap.add_argument("--count", type=int, default=10)
    ap.add_argument("--threads", type=int, default=10)
    ap.add_argument("--base-url", type=str, default=None)
    ap.add_argument("--rate-unit", type=str, default="second")
    ap.add_argument("--rate-amount", type=int, default=None, help="calls per --rate-unit (default: env / unlimited)")
    args = ap.parse_args()

    configure_logging()
    config = load_client_config()
    overrides = {}
    if args.base_url:
        overrides["base_url"] = args.base_url
    if args.rate_amount is not None:
        overrides["rate_limit"] = RateLimit.per(args.rate_unit, args.rate_amount)
    if overrides:
        config = replace(config, **overrides)

    docs = [random_document() for _ in range(args.count)]
    t0 = time.monotonic()
    with CrptApi(config) as api:
        failed = send_all(api, docs, args.threads)
    print(f"[send] {len(docs) - failed}/{len(docs)} ok in {time.monotonic() - t0:.1f}s → {config.base_url}")
    if failed:
        raise SystemExit(1)

if __name__ == "__main__":
    main()
