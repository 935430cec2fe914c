"""
Pretty printer for the JSON run logs written by `configure_logging`.

    venue-density-logs logs/venue_density_20250101_120000.log -l WARNING -o nearby_search
"""

import argparse
import json

from colorama import init, Fore, Style

COLORS = {
    "DEBUG": Fore.BLUE,
    "INFO": Fore.GREEN,
    "WARNING": Fore.YELLOW,
    "ERROR": Fore.RED,
    "CRITICAL": Fore.RED + Style.BRIGHT
}

LEVEL_PRIORITIES = {
    "DEBUG": 0,
    "INFO": 1,
    "WARNING": 2,
    "ERROR": 3,
    "CRITICAL": 4
}

CONTEXT_FIELDS = ["operation", "session_id", "search_id", "point_index", "status"]


def format_log_entry(entry: str) -> str:
    try:
        data = json.loads(entry)
    except json.JSONDecodeError:
        return entry  # Return the original line if not valid JSON

    level = data.get("level", "INFO")
    color = COLORS.get(level, "")
    reset = Style.RESET_ALL

    timestamp = data.get("timestamp", "")
    message = data.get("message", "")

    context = [f"{key}={data[key]}" for key in CONTEXT_FIELDS if key in data]

    if "error" in data:
        context.append(f"error={data['error']}")

    # Format important metrics if present
    if "metrics" in data:
        metrics = data["metrics"]
        context.append(f"requests={metrics.get('total_requests', 0)}")
        context.append(f"failed={metrics.get('failed_points', 0)}")

    context_str = " | ".join(context)

    return f"{timestamp} {color}{level.ljust(8)}{reset} {message} [{context_str}]"


def keep_entry(data: dict, line: str, level=None, text=None, operation=None) -> bool:
    if level and LEVEL_PRIORITIES.get(data.get("level", ""), 0) < LEVEL_PRIORITIES[level]:
        return False
    if text and text.lower() not in line.lower():
        return False
    if operation and data.get("operation", "") != operation:
        return False
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Pretty print JSON log files")
    parser.add_argument("logfile", help="Path to the JSON log file")
    parser.add_argument("-l", "--level", choices=list(LEVEL_PRIORITIES),
                        help="Minimum log level to display")
    parser.add_argument("-f", "--filter", help="Only show logs containing this text")
    parser.add_argument("-o", "--operation", help="Filter by operation type")
    args = parser.parse_args(argv)

    init()  # Initialize colorama

    with open(args.logfile, 'r', encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue

            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                print(line)
                continue

            if keep_entry(data, line, args.level, args.filter, args.operation):
                print(format_log_entry(line))


if __name__ == "__main__":
    main()
