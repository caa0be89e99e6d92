"""
Attendance Terminal Simulator - speaks the iclock push protocol over HTTP.

Usage:
    python main.py --terminals 3 --interval 5
    python main.py --gateway http://localhost:3000 --tenant 41038

Each virtual terminal registers with GET /iclock/cdata, then loops: upload a
small ATTLOG batch, poll /iclock/getrequest and acknowledge any command it
receives on /iclock/devicecmd.
"""

import argparse
import random
import signal
import sys
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

import httpx


@dataclass
class VirtualTerminal:
    """Represents a virtual attendance terminal."""
    serial: str
    user_pins: List[str]
    registered: bool = False
    acked: List[str] = field(default_factory=list)


VERIFY_METHODS = ["1", "15", "4"]  # fingerprint, face, card
STATUSES = ["0", "1", "2", "3"]    # check-in, check-out, break-out, break-in


def create_virtual_terminals(count: int, users: int) -> List[VirtualTerminal]:
    """Create a list of virtual terminals."""
    return [
        VirtualTerminal(
            serial=f"SIM{i:07d}",
            user_pins=[str(pin) for pin in range(1, users + 1)],
        )
        for i in range(1, count + 1)
    ]


def simulate_punches(terminal: VirtualTerminal, malformed_rate: float) -> str:
    """Build one tab-delimited ATTLOG batch of 1-3 punches."""
    lines = []
    for _ in range(random.randint(1, 3)):
        if random.random() < malformed_rate:
            lines.append("garbled")
            continue
        lines.append(
            "\t".join(
                [
                    random.choice(terminal.user_pins),
                    datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
                    random.choice(STATUSES),
                    random.choice(VERIFY_METHODS),
                    "0",
                    "0",
                ]
            )
        )
    return "\n".join(lines)


class TerminalSimulator:
    """Main simulator class."""

    def __init__(self, gateway: str, tenant: str | None, count: int, users: int,
                 interval: float, malformed_rate: float):
        prefix = f"/{tenant}" if tenant else ""
        self.base = f"{gateway.rstrip('/')}{prefix}/iclock"
        self.interval = interval
        self.malformed_rate = malformed_rate
        self.running = True
        self.terminals = create_virtual_terminals(count, users)
        self.client = httpx.Client(timeout=10.0)

    def register(self, terminal: VirtualTerminal) -> None:
        response = self.client.get(
            f"{self.base}/cdata",
            params={"SN": terminal.serial, "options": "all", "pushver": "2.4.1", "language": "69"},
        )
        response.raise_for_status()
        terminal.registered = True
        print(f"✅ [{terminal.serial}] registered: {response.text.splitlines()[0]}")

    def upload(self, terminal: VirtualTerminal) -> None:
        batch = simulate_punches(terminal, self.malformed_rate)
        response = self.client.post(
            f"{self.base}/cdata",
            params={"SN": terminal.serial, "table": "ATTLOG", "Stamp": "9999"},
            content=batch,
        )
        print(f"📡 [{terminal.serial}] ATTLOG {len(batch.splitlines())} line(s) -> {response.text}")

    def poll(self, terminal: VirtualTerminal) -> None:
        response = self.client.get(f"{self.base}/getrequest", params={"SN": terminal.serial})
        if not response.text.startswith("C:"):
            return

        _, command_id, command = response.text.split(":", 2)
        print(f"📥 [{terminal.serial}] command {command_id}: {command}")
        self.client.post(
            f"{self.base}/devicecmd",
            params={"SN": terminal.serial},
            content=f"ID={command_id}&Return=0&CMD={command.split(' ')[0]}",
        )
        terminal.acked.append(command_id)

    def start(self):
        """Start the simulation."""
        print("🕒 Starting Attendance Terminal Simulator")
        print(f"   Terminals: {len(self.terminals)}")
        print(f"   Interval: {self.interval}s")
        print(f"   Gateway: {self.base}")
        print("-" * 40)

        while self.running:
            for terminal in self.terminals:
                if not self.running:
                    break
                try:
                    if not terminal.registered:
                        self.register(terminal)
                    self.upload(terminal)
                    self.poll(terminal)
                except httpx.HTTPError as e:
                    print(f"❌ [{terminal.serial}] {e}")

            time.sleep(self.interval)

    def stop(self):
        """Stop the simulation."""
        print("\n⏹️  Stopping simulator...")
        self.running = False
        self.client.close()


def main():
    parser = argparse.ArgumentParser(description="Attendance Terminal Simulator")
    parser.add_argument("--gateway", default="http://localhost:3000", help="Gateway base URL")
    parser.add_argument("--tenant", default=None, help="Numeric tenant path segment")
    parser.add_argument("--terminals", type=int, default=2, help="Number of virtual terminals")
    parser.add_argument("--users", type=int, default=10, help="User PINs per terminal")
    parser.add_argument("--interval", type=float, default=5.0, help="Seconds between rounds")
    parser.add_argument("--malformed-rate", type=float, default=0.0,
                        help="Probability of a garbled ATTLOG line")
    args = parser.parse_args()

    simulator = TerminalSimulator(
        args.gateway, args.tenant, args.terminals, args.users, args.interval, args.malformed_rate
    )

    def signal_handler(sig, frame):
        simulator.stop()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    simulator.start()


if __name__ == "__main__":
    main()
