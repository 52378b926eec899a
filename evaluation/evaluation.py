#!/usr/bin/env python3
"""
Evaluation runner for the Huffman codec.

This evaluation script:
- Runs pytest tests on the tests/ folder
- Compresses a fixed sample set and records sizes, mode and round-trip status
- Generates a structured report with environment metadata

Run with:
    python evaluation/evaluation.py [options]
"""
import os
import sys
import json
import uuid
import platform
import subprocess
from datetime import datetime
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from huffman_compressed import HuffmanCompressed
from huffman_config import configure_logging
from huffman_core import HuffmanLogic


SAMPLES = {
    "aaaa": b"aaaa",
    "abracadabra": b"abracadabra",
    "all_bytes": bytes(range(256)),
    "single_byte": b"x",
    "skewed": b"a" * 10 + b"b",
    "skewed_abc": b"a" * 100 + b"b" * 20 + b"c" * 5,
    "log_lines": b"2024-01-01 INFO request served path=/api/v1/items status=200\n" * 64,
    "pangram": b"The quick brown fox jumps over the lazy dog. " * 32,
}


def generate_run_id():
    """Generate a short unique run ID."""
    return uuid.uuid4().hex[:8]


def get_git_info():
    """Get git commit and branch information."""
    git_info = {"git_commit": "unknown", "git_branch": "unknown"}
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5
        )
        if result.returncode == 0:
            git_info["git_commit"] = result.stdout.strip()[:8]
    except (OSError, subprocess.SubprocessError):
        pass

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5
        )
        if result.returncode == 0:
            git_info["git_branch"] = result.stdout.strip()
    except (OSError, subprocess.SubprocessError):
        pass

    return git_info


def get_environment_info():
    """Collect environment information for the report."""
    git_info = get_git_info()

    return {
        "python_version": platform.python_version(),
        "platform": platform.platform(),
        "os": platform.system(),
        "os_release": platform.release(),
        "architecture": platform.machine(),
        "hostname": platform.node(),
        "git_commit": git_info["git_commit"],
        "git_branch": git_info["git_branch"],
    }


def run_pytest(tests_dir, timeout=300):
    """
    Run pytest on the tests/ folder.

    Args:
        tests_dir: Path to the tests directory
        timeout: Seconds before the run is abandoned

    Returns:
        dict with test results
    """
    print(f"\n{'=' * 60}")
    print("RUNNING TESTS")
    print(f"{'=' * 60}")
    print(f"Tests directory: {tests_dir}")

    cmd = [
        sys.executable, "-m", "pytest",
        str(tests_dir),
        "-v",
        "--tb=short",
    ]

    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC_DIR), env.get("PYTHONPATH")]))

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            cwd=str(PROJECT_ROOT),
            env=env,
            timeout=timeout
        )
    except subprocess.TimeoutExpired:
        print("❌ Test execution timed out")
        return {
            "success": False,
            "exit_code": -1,
            "tests": [],
            "summary": {"error": "Test execution timed out"},
            "stdout": "",
            "stderr": "",
        }

    stdout = result.stdout
    stderr = result.stderr

    tests = parse_pytest_verbose_output(stdout)

    passed = sum(1 for t in tests if t.get("outcome") == "passed")
    failed = sum(1 for t in tests if t.get("outcome") == "failed")
    errors = sum(1 for t in tests if t.get("outcome") == "error")
    skipped = sum(1 for t in tests if t.get("outcome") == "skipped")
    total = len(tests)

    print(f"\nResults: {passed} passed, {failed} failed, {errors} errors, {skipped} skipped (total: {total})")

    for test in tests:
        status_icon = {
            "passed": "✅",
            "failed": "❌",
            "error": "💥",
            "skipped": "⏭️"
        }.get(test.get("outcome"), "❓")
        print(f"  {status_icon} {test.get('nodeid', 'unknown')}: {test.get('outcome', 'unknown')}")

    return {
        "success": result.returncode == 0,
        "exit_code": result.returncode,
        "tests": tests,
        "summary": {
            "total": total,
            "passed": passed,
            "failed": failed,
            "errors": errors,
            "skipped": skipped,
        },
        "stdout": stdout[-3000:] if len(stdout) > 3000 else stdout,
        "stderr": stderr[-1000:] if len(stderr) > 1000 else stderr,
    }


def parse_pytest_verbose_output(output):
    """Parse pytest verbose output to extract test results."""
    tests = []

    for line in output.split('\n'):
        line_stripped = line.strip()

        # Match lines like: tests/test_huffman_core.py::test_abracadabra_tree PASSED
        if '::' not in line_stripped:
            continue

        for status_word in (' PASSED', ' FAILED', ' ERROR', ' SKIPPED'):
            if status_word in line_stripped:
                nodeid = line_stripped.split(status_word)[0].strip()
                tests.append({
                    "nodeid": nodeid,
                    "name": nodeid.split("::")[-1],
                    "outcome": status_word.strip().lower(),
                })
                break

    return tests


def measure_sample(name, data, logic):
    """Compress one sample and describe the outcome."""
    obj = HuffmanCompressed(data, logic=logic)
    roundtrip = obj.decompress() == data
    return {
        "name": name,
        "uncompressed_size": obj.uncompressed_size(),
        "compressed_size": obj.compressed_size(),
        "stored_size": obj.size(),
        "mode": "huffman" if obj.is_compressed else "raw",
        "node_count": obj.node_count,
        "bit_count": obj.bit_count,
        "ratio": round(obj.size() / obj.uncompressed_size(), 4),
        "bytes_saved": obj.bytes_saved(),
        "roundtrip": roundtrip,
    }


def run_compression_report(samples=SAMPLES):
    print(f"\n{'=' * 60}")
    print("COMPRESSION REPORT")
    print(f"{'=' * 60}")

    logic = HuffmanLogic()
    rows = []
    for name, data in samples.items():
        row = measure_sample(name, data, logic)
        rows.append(row)
        icon = "✅" if row["roundtrip"] else "❌"
        print(
            f"  {icon} {name}: {row['uncompressed_size']} -> {row['stored_size']} bytes "
            f"({row['mode']}, {row['node_count']} nodes, ratio {row['ratio']})"
        )

    return {
        "success": all(row["roundtrip"] for row in rows),
        "samples": rows,
    }


def run_evaluation(skip_tests=False):
    """
    Run the test suite and the compression report.

    Returns dict with both results.
    """
    print(f"\n{'=' * 60}")
    print("HUFFMAN CODEC EVALUATION")
    print(f"{'=' * 60}")

    if skip_tests:
        test_results = {"success": True, "skipped": True}
    else:
        test_results = run_pytest(PROJECT_ROOT / "tests")
    report = run_compression_report()

    print(f"\n{'=' * 60}")
    print("EVALUATION SUMMARY")
    print(f"{'=' * 60}")
    if not skip_tests:
        summary = test_results.get("summary", {})
        print(f"  Tests: {'✅ PASSED' if test_results.get('success') else '❌ FAILED'} "
              f"({summary.get('passed', 0)}/{summary.get('total', 0)} passed)")
    print(f"  Round-trips: {'✅ PASSED' if report['success'] else '❌ FAILED'}")

    return {
        "tests": test_results,
        "compression": report,
    }


def generate_output_path():
    """Generate output path in format: evaluation/YYYY-MM-DD/HH-MM-SS/report.json"""
    now = datetime.now()
    date_str = now.strftime("%Y-%m-%d")
    time_str = now.strftime("%H-%M-%S")

    output_dir = PROJECT_ROOT / "evaluation" / date_str / time_str
    output_dir.mkdir(parents=True, exist_ok=True)

    return output_dir / "report.json"


def main():
    """Main entry point for evaluation."""
    import argparse

    parser = argparse.ArgumentParser(description="Run the Huffman codec evaluation")
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output JSON file path (default: evaluation/YYYY-MM-DD/HH-MM-SS/report.json)"
    )
    parser.add_argument(
        "--skip-tests",
        action="store_true",
        help="only run the compression report"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="codec log level (default: HUFFMAN_LOG_LEVEL or WARNING)"
    )

    args = parser.parse_args()
    configure_logging(args.log_level)

    run_id = generate_run_id()
    started_at = datetime.now()

    print(f"Run ID: {run_id}")
    print(f"Started at: {started_at.isoformat()}")

    try:
        results = run_evaluation(skip_tests=args.skip_tests)
        success = results["tests"].get("success", False) and results["compression"]["success"]
        error_message = None if success else "Evaluation failed"

    except Exception as e:
        import traceback
        print(f"\nERROR: {str(e)}")
        traceback.print_exc()
        results = None
        success = False
        error_message = str(e)

    finished_at = datetime.now()
    duration = (finished_at - started_at).total_seconds()

    report = {
        "run_id": run_id,
        "started_at": started_at.isoformat(),
        "finished_at": finished_at.isoformat(),
        "duration_seconds": round(duration, 6),
        "success": success,
        "error": error_message,
        "environment": get_environment_info(),
        "results": results,
    }

    if args.output:
        output_path = Path(args.output)
    else:
        output_path = generate_output_path()

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(report, f, indent=2)
    print(f"\n✅ Report saved to: {output_path}")

    print(f"\n{'=' * 60}")
    print("EVALUATION COMPLETE")
    print(f"{'=' * 60}")
    print(f"Run ID: {run_id}")
    print(f"Duration: {duration:.2f}s")
    print(f"Success: {'✅ YES' if success else '❌ NO'}")

    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
