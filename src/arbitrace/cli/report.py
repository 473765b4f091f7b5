"""
Report command implementation.

Runs one transaction through the trace pipeline and prints the annotated
call tree, the state diff and the token transfers.
"""

import sys

from arbitrace.cache import CacheStore
from arbitrace.core.models import AnnotatedCallFrame, PipelineStage, TraceReport
from arbitrace.core.pipeline import TracePipeline
from arbitrace.core.serializer import ReportSerializer
from arbitrace.core.formatting import format_units
from arbitrace.core.trace_fetcher import validate_tx_hash
from arbitrace.utils.colors import address, bold, dim, error, function_name, gas_value, info, success
from arbitrace.utils.exceptions import ArbitraceError, TraceUnavailableError
from arbitrace.utils.logging import get_logger, setup_logging
from arbitrace.cli.common import build_config, handle_command_error

logger = get_logger("cli")


def report_command(args) -> int:
    """
    Execute the report command.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    json_mode = getattr(args, 'json', False)
    quiet = getattr(args, 'quiet', False)

    setup_logging(
        quiet=quiet,
        debug=getattr(args, 'debug', False),
        verbose=getattr(args, 'verbose', False),
        log_file=getattr(args, 'log_file', None),
    )

    # Malformed hashes never reach the network
    try:
        tx_hash = validate_tx_hash(args.tx_hash)
    except ArbitraceError as e:
        return handle_command_error(e, json_mode)

    try:
        config = build_config(args)
    except ValueError as e:
        return handle_command_error(e, json_mode)

    pipeline = TracePipeline.from_config(tx_hash, config, CacheStore(config.cache_dir))
    if not quiet and not json_mode:
        pipeline.add_listener(_print_progress)

    try:
        report = pipeline.run()
    except TraceUnavailableError as e:
        logger.debug(e.message)
        e.message = f"Could not retrieve/decode transaction {tx_hash}"
        return handle_command_error(e, json_mode)
    except ArbitraceError as e:
        return handle_command_error(e, json_mode)

    serializer = ReportSerializer(pipeline.decoder)
    if json_mode:
        print(serializer.to_json(report))
    else:
        _print_report(report)
    return 0


def _print_progress(stage: PipelineStage) -> None:
    print(dim(f"... {stage.value}"), file=sys.stderr)


def _print_frame(node: AnnotatedCallFrame, depth: int = 0) -> None:
    frame = node.frame
    indent = "  " * depth
    target = node.pretty_address or frame.to_addr
    line = f"{indent}{frame.call_type} {address(target)} {function_name(node.display_input)}"
    if node.pretty_value is not None:
        line += f" value={node.pretty_value} ETH"
    line += f" {gas_value(frame.gas)}"
    if frame.reverted:
        line += " " + error(f"reverted: {frame.error}")
    else:
        line += f" -> {node.display_output}"
    print(line)
    for child in node.calls:
        _print_frame(child, depth + 1)


def _print_report(report: TraceReport) -> None:
    print(bold(f"Transaction {report.tx_hash}"))
    print()
    print(bold("Call tree"))
    _print_frame(report.call_tree)

    print()
    print(bold("State changes"))
    if not report.state_diff:
        print(dim("  none"))
    for contract, slots in report.state_diff.items():
        print(f"  {address(contract)}")
        for slot, value in slots.items():
            print(f"    {slot} = {value}")

    print()
    print(bold("Token transfers"))
    if not report.transfers:
        print(dim("  none"))
    for token, events in report.transfers.items():
        meta = report.token_metadata.get(token)
        symbol = meta.symbol if meta and meta.symbol else token
        decimals = meta.decimals if meta else None
        print(f"  {info(symbol)} ({address(token)})")
        for event in events:
            print(f"    {event.from_addr} -> {event.to_addr}: {format_units(event.amount, decimals)}")

    print()
    print(success(report.stage.value))
