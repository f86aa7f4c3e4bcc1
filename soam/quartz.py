"""Quartz optimiser servers reached over msgpack-rpc."""

from __future__ import annotations

import asyncio
import subprocess
import sys
import time
from collections import deque
from typing import Any, Coroutine, Iterable, Sequence, TypeVar

import msgpack

from .config import QuartzConfig, TimeOut
from .qasm import CircuitSeq

T = TypeVar("T")

if sys.platform == "win32":
    _DEFAULT_COMMAND: tuple[str, ...] = ("./resources/quartz/build/Release/wrapper_rpc.exe",)
else:
    _DEFAULT_COMMAND = ("./resources/quartz/build/wrapper_rpc",)

_ERROR_REPLY = "An error occurred"
_REQUEST = 0
_RESPONSE = 1


class _RpcError(Exception):
    """The server answered a request with an error."""


class _RpcClient:
    """A minimal msgpack-rpc client over one stream connection."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer
        self._unpacker = msgpack.Unpacker(raw=False)
        self._next_id = 0

    async def request(self, method: str, params: Sequence[Any]) -> Any:
        msgid = self._next_id
        self._next_id = (self._next_id + 1) & 0xFFFFFFFF
        self._writer.write(msgpack.packb([_REQUEST, msgid, method, list(params)], use_bin_type=True))
        await self._writer.drain()
        while True:
            for message in self._unpacker:
                if (
                    isinstance(message, list)
                    and len(message) == 4
                    and message[0] == _RESPONSE
                    and message[1] == msgid
                ):
                    error, result = message[2], message[3]
                    if error is not None:
                        raise _RpcError(error)
                    return result
            data = await self._reader.read(65536)
            if not data:
                raise ConnectionError("optimizer closed the connection")
            self._unpacker.feed(data)

    async def close(self) -> None:
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError:
            pass


class QuartzServer:
    """One optimiser process and the connection to it."""

    def __init__(
        self,
        command: Iterable[str] | None = None,
        *,
        max_attempts: int = 20,
        retry_delay: float = 0.1,
    ) -> None:
        self.command = tuple(command) if command is not None else _DEFAULT_COMMAND
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.port: int | None = None
        self._process: subprocess.Popen[bytes] | None = None
        self._client: _RpcClient | None = None
        self._lock = asyncio.Lock()

    async def initialize(
        self,
        port: int,
        gate_set: str,
        ecc_file: str,
        cost_func: str,
        timeout: TimeOut,
    ) -> None:
        """Start the optimiser on `port` and connect to it."""
        args = [
            *self.command,
            str(port),
            str(gate_set),
            str(ecc_file),
            str(cost_func),
            timeout.kind.value,
            str(timeout),
        ]
        try:
            process = subprocess.Popen(args)
        except OSError as exc:
            raise RuntimeError("Failed to start optimizer process") from exc

        attempt = 0
        while True:
            attempt += 1
            try:
                reader, writer = await asyncio.open_connection("127.0.0.1", port)
                break
            except OSError:
                if attempt >= self.max_attempts:
                    print("Reached maximum number of connection attempts. Exiting.")
                    process.kill()
                    process.wait()
                    raise RuntimeError("Failed to connect to optimizer process") from None
                await asyncio.sleep(self.retry_delay)

        async with self._lock:
            self._process = process
            self.port = port
            self._client = _RpcClient(reader, writer)

    async def optimize(self, circuit: str, function_name: str) -> str:
        """Call `function_name` on the server with the circuit text."""
        async with self._lock:
            if self._client is None:
                raise RuntimeError("Client not initialized")
            try:
                result = await self._client.request(function_name, [circuit])
            except (_RpcError, OSError, ValueError, msgpack.UnpackException):
                return _ERROR_REPLY
        return result if isinstance(result, str) else ""

    async def shutdown(self) -> None:
        """Stop the optimiser process and drop the connection."""
        async with self._lock:
            process, self._process = self._process, None
            if process is not None:
                process.kill()
                process.wait()
            self.port = None
            client, self._client = self._client, None
            if client is not None:
                await client.close()


class Quartz:
    """A pool of optimiser servers on consecutive ports, shared by callers."""

    def __init__(
        self,
        config: QuartzConfig,
        port: int,
        *,
        command: Iterable[str] | None = None,
        max_attempts: int = 20,
        shutdown_grace: float = 1.0,
    ) -> None:
        command = tuple(command) if command is not None else None
        self.servers = [
            QuartzServer(command, max_attempts=max_attempts) for _ in range(config.n_threads)
        ]
        self._busy = [False] * len(self.servers)
        self._available = asyncio.Condition()
        self._shutdown_grace = shutdown_grace
        self._loop = asyncio.new_event_loop()
        try:
            self._block_on(
                self.initialize(
                    port,
                    str(config.gateset),
                    config.ecc_path,
                    str(config.cost),
                    config.timeout,
                )
            )
        except BaseException:
            self._loop.close()
            raise

    def __enter__(self) -> Quartz:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _block_on(self, coro: Coroutine[Any, Any, T]) -> T:
        if self._loop.is_closed():
            coro.close()
            raise RuntimeError("the optimizer servers have been shut down")
        return self._loop.run_until_complete(coro)

    async def initialize(
        self,
        starting_port: int,
        gate_set: str,
        ecc_file: str,
        cost_func: str,
        timeout: TimeOut,
    ) -> None:
        """Start every server, the i-th on `starting_port + i`."""
        outcomes = await asyncio.gather(
            *(
                server.initialize(starting_port + i, gate_set, ecc_file, cost_func, timeout)
                for i, server in enumerate(self.servers)
            ),
            return_exceptions=True,
        )
        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if failures:
            for server in self.servers:
                await server.shutdown()
            raise failures[0]

    async def optimize_single_async(self, circuit: str, function_name: str) -> str:
        """Optimise one circuit on the first idle server, waiting for one if needed."""
        if not self.servers:
            raise RuntimeError("no optimizer servers are running")
        async with self._available:
            await self._available.wait_for(lambda: not all(self._busy))
            index = self._busy.index(False)
            self._busy[index] = True
        try:
            return await self.servers[index].optimize(circuit, function_name)
        finally:
            async with self._available:
                self._busy[index] = False
                self._available.notify()

    def run_single(self, circ: CircuitSeq, function_name: str) -> CircuitSeq:
        reply = self._block_on(self.optimize_single_async(circ.dump(), function_name))
        return CircuitSeq.from_source(reply)

    async def optimize_all(self, circuits: Iterable[str], function_name: str) -> list[str]:
        """Optimise many circuits, each server taking the next one when free."""
        queue = deque(enumerate(circuits))
        results: list[str | None] = [None] * len(queue)

        async def worker(server: QuartzServer) -> None:
            while queue:
                index, circuit = queue.popleft()
                results[index] = await server.optimize(circuit, function_name)

        await asyncio.gather(*(worker(server) for server in self.servers))
        return [result for result in results if result is not None]

    def shutdown(self) -> None:
        """Stop every server; further calls do nothing."""
        if self._loop.is_closed():
            return

        async def stop_all() -> None:
            for server in self.servers:
                await server.shutdown()

        self._loop.run_until_complete(stop_all())
        time.sleep(self._shutdown_grace)
        self._loop.close()