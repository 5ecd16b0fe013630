#!/usr/bin/env python3
"""
pager-relay reader - pipes multimon-ng output to a PagerMon server

Usage:
    multimon-ng -a POCSAG512 -a FLEX -a EAS -f alpha -t raw - | pager-relay
    pager-relay --command "rtl_fm -f 152.0M -s 22050 - | multimon-ng -a FLEX -t raw -"
"""

import argparse
import asyncio
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Callable, Optional, Union

import httpx

from .config import DEFAULT_CONFIG_PATH, ReaderConfig, load_config, write_default_config
from .decoders import EASAdapter, FLEXDecoder, FragmentStore, POCSAGDecoder
from .decoders.eas import SameDecodeFunc
from .delivery import DeliverySender
from .dispatcher import LineDispatcher
from .errors import ConfigError
from .models import LineOutcome, LineResult
from .normalizer import MessageNormalizer
from .utils.timestamps import TimestampResolver

logger = logging.getLogger(__name__)

STATS_INTERVAL = 600  # seconds between statistics log lines


class PagerReader:
    """Feeds raw lines through the dispatcher and hands messages to the sender"""

    def __init__(self, dispatcher: LineDispatcher, sender: DeliverySender,
                 clock: Callable[[], float] = time.time):
        self.dispatcher = dispatcher
        self.sender = sender
        self.clock = clock

    def handle_line(self, line: str) -> LineResult:
        """Process one line to completion and dispatch delivery if it is a message"""
        result = self.dispatcher.process_line(line)
        stamp = datetime.fromtimestamp(self.clock()).strftime("%Y-%m-%d %H:%M:%S")

        if result.outcome is LineOutcome.EMITTED:
            message = result.message
            logger.info(f"{stamp}: {message.address}: {message.message}")
            self.sender.send(message)
        elif result.outcome in (LineOutcome.MALFORMED, LineOutcome.DECODE_FAILED):
            logger.warning(f"{result.reason} from line: {line!r}")
        elif result.outcome is LineOutcome.ERROR:
            logger.error(f"Error processing line: {line!r}", exc_info=result.error)
        else:
            logger.info(f"{stamp}: {line}")
        return result

    async def run(self, lines: AsyncIterator[str]):
        """Consume lines until the input ends, then wait for pending deliveries"""
        last_stats = self.clock()
        async for line in lines:
            if not line:
                continue
            self.handle_line(line)

            if self.clock() - last_stats > STATS_INTERVAL:
                logger.info(f"Statistics: {self.dispatcher.get_statistics()} "
                            f"delivery: {self.sender.stats}")
                last_stats = self.clock()

        logger.warning("Input died!")
        if self.sender.in_flight:
            logger.info(f"Waiting for {self.sender.in_flight} deliveries to finish")
        await self.sender.drain()


def build_reader(config: ReaderConfig, clock: Callable[[], float] = time.time,
                 decode_func: Optional[SameDecodeFunc] = None,
                 client: Optional[httpx.AsyncClient] = None,
                 sender: Optional[DeliverySender] = None) -> PagerReader:
    """Wire decoders, normalizer and sender from the configuration"""
    timestamps = TimestampResolver(clock=clock)
    decoders = [
        POCSAGDecoder(timestamps=timestamps,
                      send_function_code=config.send_function_code,
                      use_timestamp=config.use_timestamp),
        FLEXDecoder(fragments=FragmentStore(), timestamps=timestamps,
                    use_timestamp=config.use_timestamp),
        EASAdapter(decode_func=decode_func,
                   exclude_events=config.eas.exclude_events,
                   include_fips=config.eas.include_fips,
                   address_add_type=config.eas.address_add_type,
                   timestamps=timestamps),
    ]
    dispatcher = LineDispatcher(decoders, MessageNormalizer(config.identifier))
    if sender is None:
        sender = DeliverySender(config.hostname, config.apikey, client=client)
    return PagerReader(dispatcher, sender, clock=clock)


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


async def stream_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    """Yield decoded lines from an asyncio stream until EOF"""
    while True:
        raw = await stream.readline()
        if not raw:
            break
        yield _decode(raw)


async def file_lines(path: Union[Path, int], closefd: bool = True) -> AsyncIterator[str]:
    """Yield lines from a file path or descriptor, letting pending deliveries run in between"""
    with open(path, "rb", closefd=closefd) as f:
        for raw in f:
            yield _decode(raw)
            await asyncio.sleep(0)


async def stdin_lines() -> AsyncIterator[str]:
    """Yield lines from stdin, whether it is a pipe or a redirected file"""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    except ValueError:
        # Regular files cannot be registered with the event loop; sys.stdin.name
        # is "<stdin>", so read the redirected file through its descriptor
        async for line in file_lines(sys.stdin.fileno(), closefd=False):
            yield line
        return
    async for line in stream_lines(reader):
        yield line


async def command_lines(command: str) -> AsyncIterator[str]:
    """Run a demodulator command and yield its stdout lines"""
    logger.info(f"Starting demodulator: {command}")
    process = await asyncio.create_subprocess_shell(
        command,
        stdout=asyncio.subprocess.PIPE
    )
    logger.info(f"Demodulator started (PID: {process.pid})")
    try:
        async for line in stream_lines(process.stdout):
            yield line
    finally:
        if process.returncode is None:
            process.terminate()
            try:
                await asyncio.wait_for(process.wait(), timeout=2.0)
            except asyncio.TimeoutError:
                process.kill()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pager-relay",
        description="Forward multimon-ng POCSAG/FLEX/EAS decodes to a PagerMon server"
    )
    parser.add_argument("-c", "--config", default=str(DEFAULT_CONFIG_PATH),
                        help="path to config.json (default: %(default)s)")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("-i", "--input", help="read lines from a file instead of stdin")
    source.add_argument("--command", help="run a demodulator command and read its output")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    """Main entry point"""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    config_path = Path(args.config)
    if not config_path.exists():
        write_default_config(config_path)
        return 0

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if args.command:
        lines = command_lines(args.command)
    elif args.input:
        lines = file_lines(Path(args.input))
    else:
        lines = stdin_lines()

    reader = build_reader(config)
    logger.info(f"Forwarding messages to {reader.sender.url} as {config.identifier!r}")
    try:
        await reader.run(lines)
    finally:
        await reader.sender.aclose()
    return 0


def run():
    """Console script entry point"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    run()
