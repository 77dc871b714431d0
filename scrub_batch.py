# scrub_batch.py
# Scrub an Excel sheet of repair orders from the command line.
import argparse, json, os
from adas_scrub.config import ScrubOptions
from adas_scrub.engine import ScrubEngine
from adas_scrub.io_excel import load_ro_excel, write_result

def main():
    ap = argparse.ArgumentParser(description="Scrub repair-order estimates against external calibration reports")
    ap.add_argument("--input", required=True, help="Excel file with Estimate Text / Required Calibrations columns")
    ap.add_argument("--output", default=None, help="Output Excel (default: <input>_scrubbed.xlsx)")
    ap.add_argument("--kb", default=None, help="Knowledge base JSON: brand -> {triggers, exclusions}")
    ap.add_argument("--quick-scan", action="store_true", help="Skip line extraction for estimates without ADAS repairs")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    kb_by_brand = None
    if args.kb:
        with open(args.kb, encoding="utf-8") as f:
            kb_by_brand = json.load(f)

    options = ScrubOptions.from_env()
    engine = ScrubEngine(options=options, kb_by_brand=kb_by_brand, verbose=args.verbose)

    df = load_ro_excel(args.input)
    rows = engine.scrub_batch(df, skip_without_adas=args.quick_scan)
    out_df = engine.to_dataframe(rows)

    output = args.output or os.path.splitext(args.input)[0] + "_scrubbed.xlsx"
    write_result(out_df, output)

    stats = engine.get_statistics(rows)
    print(f"OK. Scrubbed {stats['total_ros']} ROs -> {output}")
    for status, n in stats["status"].items():
        print(f"  {status}: {n}")
    print(f"Needs review rate: {stats['needs_review_rate']*100:.1f}%")

if __name__ == "__main__":
    main()
