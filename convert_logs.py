#!/usr/bin/env python3
import sys
import os
import json

def convert_log(jsonl_path):
    if not os.path.exists(jsonl_path):
        print(f"Error: File {jsonl_path} not found.")
        return None

    try:
        import pandas as pd
    except ImportError:
        print("Error: pandas is not installed. Please run 'pip install pandas'")
        return None

    print(f"Converting {jsonl_path}...")

    # Read JSONL, skipping blank lines left by an interrupted run
    records = []
    try:
        with open(jsonl_path, 'r') as f:
            for line in f:
                if line.strip(): records.append(json.loads(line))
    except (OSError, ValueError) as e:
        print(f"Conversion failed: {e}")
        return None

    if not records:
        print("Log file is empty.")
        return None

    df = pd.DataFrame(records)
    base_name = os.path.splitext(jsonl_path)[0]
    written = []

    # Apple Numbers / Excel compatible CSV
    csv_path = f"{base_name}.csv"
    try:
        df.to_csv(csv_path, index=False, encoding='utf-8-sig')
    except OSError as e:
        print(f"CSV export failed: {e}")
    else:
        print(f"-> Saved {csv_path}")
        written.append(csv_path)

    # Excel
    xlsx_path = f"{base_name}.xlsx"
    try:
        df.to_excel(xlsx_path, index=False)
    except (ImportError, OSError) as e:
        print(f"Excel export failed: {e}")
    else:
        print(f"-> Saved {xlsx_path}")
        written.append(xlsx_path)

    return written

def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) < 1:
        print("Usage: python3 convert_logs.py <path_to_fix_log.jsonl>")
        return 1
    return 0 if convert_log(argv[0]) else 1

if __name__ == "__main__":
    sys.exit(main())
