#!/usr/bin/env python3
"""
Concurrent reachability probing of AP clients.

Each client gets one independent ICMP echo with a bounded timeout. Probes run
on a bounded thread pool that is created per probing call and shut down once
its work is queued. Two modes are offered:

- ``probe_async`` returns at once and reports each reachable client to a
  listener from a worker thread; the returned ProbeHandle can wait for or
  cancel the remaining probes.
- ``probe_all`` blocks until every probe finished and returns the reachable
  clients in submission order, or None if it was interrupted.
"""

import ipaddress
import math
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence, Union

import ping3
from loguru import logger

from .command_utils import run_command
from .models import Client

ReachabilityCheck = Callable[[str, int], bool]
ClientListener = Callable[[Client], None]

DEFAULT_MAX_WORKERS = 32
DEFAULT_MAX_BATCH = 256

# How often probe_all looks at its cancel event while waiting
_CANCEL_POLL_INTERVAL = 0.05

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def system_ping(address: IPAddress, timeout_ms: int) -> bool:
    """
    Send one echo request with the system ping binary.

    ping only waits in whole seconds, so the process itself is stopped once
    `timeout_ms` has passed.
    """
    seconds = max(1, math.ceil(timeout_ms / 1000))
    cmd = ["ping", "-c", "1", "-W", str(seconds)]
    if address.version == 6:
        cmd.append("-6")
    cmd.append(str(address))
    result = run_command(cmd, timeout=max(timeout_ms, 1) / 1000, log_failures=False)
    return result.success


def icmp_echo(ip_address: str, timeout_ms: int) -> bool:
    """
    Check whether a host answers an ICMP echo within the timeout.

    Uses ping3 for IPv4. IPv6 targets, and hosts where raw ICMP sockets are
    not permitted, go through the system ping binary instead.

    Args:
        ip_address: Literal IPv4 or IPv6 address
        timeout_ms: Milliseconds to wait for the reply

    Returns:
        True if a reply arrived in time

    Raises:
        ValueError: If `ip_address` is not a valid IP address
    """
    address = ipaddress.ip_address(ip_address)
    if address.version == 6:
        return system_ping(address, timeout_ms)

    try:
        delay = ping3.ping(str(address), timeout=max(timeout_ms, 1) / 1000)
    except PermissionError:
        logger.debug("Raw ICMP socket not permitted, using system ping")
        return system_ping(address, timeout_ms)

    # ping3 returns the delay in seconds, None on timeout and False on error
    return isinstance(delay, float)


class ProbeHandle:
    """
    Tracks the probes started by ReachabilityProber.probe_async.
    """

    def __init__(self) -> None:
        self._futures: List[Future] = []
        self._cancel_event = threading.Event()
        self._lock = threading.Lock()
        self._reachable: List[Client] = []

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    @property
    def done(self) -> bool:
        """True once no probe is queued or running."""
        return all(future.done() for future in self._futures)

    @property
    def reachable(self) -> List[Client]:
        """Clients reported reachable so far."""
        with self._lock:
            return list(self._reachable)

    def cancel(self) -> None:
        """
        Drop queued probes and suppress further listener calls.

        Probes already waiting on the network finish in the background but
        are not reported.
        """
        self._cancel_event.set()
        for future in self._futures:
            future.cancel()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until every probe finished or `timeout` seconds passed.

        Returns:
            True if all probes are done
        """
        _, not_done = wait(self._futures, timeout=timeout)
        return not not_done

    def _add(self, future: Future) -> None:
        self._futures.append(future)

    def _record(self, client: Client) -> None:
        with self._lock:
            self._reachable.append(client)


class ReachabilityProber:
    """
    Runs reachability checks for many clients at once.

    Args:
        check: Callable taking an IP string and a timeout in milliseconds
        max_workers: Upper bound on concurrent probes per call
        max_batch: Largest number of clients probe_all queues at a time
    """

    def __init__(
        self,
        check: ReachabilityCheck = icmp_echo,
        max_workers: int = DEFAULT_MAX_WORKERS,
        max_batch: int = DEFAULT_MAX_BATCH,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if max_batch < 1:
            raise ValueError("max_batch must be at least 1")
        self.check = check
        self.max_workers = max_workers
        self.max_batch = max_batch

    def is_reachable(self, client: Client, timeout_ms: int) -> bool:
        """Probe one client; errors count as unreachable."""
        try:
            return bool(self.check(client.ip_address, timeout_ms))
        except Exception as e:
            logger.debug(f"Probe of {client.ip_address} failed: {e}")
            return False

    def _executor(self, size: int) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, size)),
            thread_name_prefix="ap-probe",
        )

    def probe_async(
        self,
        clients: Sequence[Client],
        listener: ClientListener,
        timeout_ms: int,
    ) -> ProbeHandle:
        """
        Probe clients in the background.

        `listener` is called once, from a worker thread, for each client that
        answers. Unreachable clients and failed probes are not reported.
        There is no ordering between notifications.

        Returns:
            ProbeHandle for waiting on or cancelling the probes
        """
        handle = ProbeHandle()
        if not clients:
            return handle

        executor = self._executor(len(clients))
        try:
            for client in clients:
                handle._add(
                    executor.submit(
                        self._probe_and_notify, handle, client, listener, timeout_ms
                    )
                )
        except RuntimeError as e:
            logger.error(f"Could not schedule reachability probes: {e}")
            handle.cancel()
        finally:
            # Queued probes still run; the workers exit once they are done
            executor.shutdown(wait=False)
        return handle

    def _probe_and_notify(
        self,
        handle: ProbeHandle,
        client: Client,
        listener: ClientListener,
        timeout_ms: int,
    ) -> None:
        if handle.cancelled:
            return
        if not self.is_reachable(client, timeout_ms) or handle.cancelled:
            return
        handle._record(client)
        try:
            listener(client)
        except Exception:
            logger.exception(f"Reachable client listener failed for {client.ip_address}")

    def probe_all(
        self,
        clients: Sequence[Client],
        timeout_ms: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[List[Client]]:
        """
        Probe clients and wait for every result.

        Clients are queued in batches of at most `max_batch`. Setting
        `cancel_event` while waiting abandons the remaining probes.

        Returns:
            Reachable clients in the order they were given, or None if the
            wait was cancelled or the executor failed
        """
        clients = list(clients)
        reachable: List[Client] = []
        for start in range(0, len(clients), self.max_batch):
            found = self._probe_batch(
                clients[start:start + self.max_batch], timeout_ms, cancel_event
            )
            if found is None:
                return None
            reachable.extend(found)
        return reachable

    def _probe_batch(
        self,
        batch: List[Client],
        timeout_ms: int,
        cancel_event: Optional[threading.Event],
    ) -> Optional[List[Client]]:
        executor = self._executor(len(batch))
        try:
            futures = [
                executor.submit(self.is_reachable, client, timeout_ms)
                for client in batch
            ]
            if not self._wait_all(futures, cancel_event):
                logger.warning("Reachability probing cancelled, discarding results")
                return None
            return [
                client for client, future in zip(batch, futures) if future.result()
            ]
        except Exception as e:
            logger.error(f"Reachability probing failed: {e}")
            return None
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def _wait_all(
        futures: List[Future], cancel_event: Optional[threading.Event]
    ) -> bool:
        if cancel_event is None:
            wait(futures)
            return True

        pending = set(futures)
        while pending:
            if cancel_event.is_set():
                return False
            _, pending = wait(
                pending, timeout=_CANCEL_POLL_INTERVAL, return_when=FIRST_COMPLETED
            )
        return True
