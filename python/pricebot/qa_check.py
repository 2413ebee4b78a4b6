import argparse
import csv
import json
import logging

from .config import load_settings
from .service import build_assistant


def run_check(force: bool, question: str | None):
    assistant = build_assistant(load_settings())
    report = assistant.cache.ensure_fresh(force)
    snapshot = assistant.cache.snapshot()
    answer = assistant.ask(question) if question else None
    return report, snapshot, answer


def write_outputs(report, snapshot, json_path: str, csv_path: str):
    payload = {
        "report": report.as_dict() if report else None,
        "refreshed_at": snapshot.refreshed_at,
        "products": [product.public_dict() for product in snapshot.products],
    }
    with open(json_path, "w", encoding="utf-8") as json_handle:
        json.dump(payload, json_handle, indent=2, ensure_ascii=False)
    with open(csv_path, "w", newline="", encoding="utf-8") as csv_handle:
        writer = csv.writer(csv_handle)
        writer.writerow(["name", "price", "price_value", "url"])
        for product in sorted(snapshot.products, key=lambda item: (item.price_value, item.name.lower())):
            writer.writerow([product.name, product.price, f"{product.price_value:.2f}", product.url])


def main():
    parser = argparse.ArgumentParser(description="QA check for catalog extraction results.")
    parser.add_argument("--no-force", action="store_true", help="Reuse a fresh catalog instead of forcing a refresh")
    parser.add_argument("--question", help="Also answer this question against the catalog")
    parser.add_argument("--json", default="qa_report.json", help="Output JSON path")
    parser.add_argument("--csv", default="qa_report.csv", help="Output CSV path")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    report, snapshot, answer = run_check(force=not args.no_force, question=args.question)
    write_outputs(report, snapshot, args.json, args.csv)
    if report:
        print(f"[qa] listings ok={report.listing_ok} failed={report.listing_failed}")
        print(f"[qa] details ok={report.detail_ok} failed={report.detail_failed}")
        print(f"[qa] {report.retained}/{report.discovered} products kept in {report.elapsed:.2f}s")
    if answer:
        print("[qa] answer:")
        print(answer["answer"])


if __name__ == "__main__":
    main()
