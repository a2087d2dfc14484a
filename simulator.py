"""Interactive CLI simulator — exercise the OTP endpoints without WhatsApp."""

import asyncio
import os

# Must be set before the app (and its settings) are imported.
os.environ.setdefault("MESSAGING_BACKEND", "console")

import httpx  # noqa: E402
import uvicorn  # noqa: E402

from whatsapp_otp_gateway.main import app  # noqa: E402

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"

BASE_URL = "http://127.0.0.1:8000"


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print(f"  📲  WhatsApp OTP Gateway — Simulator")
    print(f"{'=' * 52}{RESET}\n")

    print(f"{DIM}Commands:{RESET}")
    print(f"{DIM}  otp <number>              request an OTP{RESET}")
    print(f"{DIM}  verify <number> <code>    verify an OTP{RESET}")
    print(f"{DIM}  send <number> <text...>   send a message{RESET}")
    print(f"{DIM}  quit{RESET}")
    print(f"{DIM}Outbound messages are printed in the server logs{RESET}\n")

    # ── Start the app in the background ──────────────────
    config = uvicorn.Config(app, host="127.0.0.1", port=8000, log_level="warning")
    server = uvicorn.Server(config)
    server_task = asyncio.create_task(server.serve())

    # Give the server a moment to start
    await asyncio.sleep(0.5)

    async with httpx.AsyncClient(base_url=BASE_URL, timeout=None) as client:
        while True:
            try:
                line = input(f"{BLUE}{BOLD}>{RESET} ").strip()
            except (KeyboardInterrupt, EOFError):
                print(f"\n{DIM}Goodbye!{RESET}")
                break

            if not line:
                continue

            command, _, rest = line.partition(" ")
            command = command.lower()

            if command == "quit":
                print(f"{DIM}Goodbye!{RESET}")
                break

            if command == "otp":
                resp = await client.get("/send-otp", params={"number": rest.strip()})
            elif command == "verify":
                number, _, code = rest.strip().partition(" ")
                resp = await client.get(
                    "/verify-otp", params={"number": number, "otp": code.strip()}
                )
            elif command == "send":
                number, _, text = rest.strip().partition(" ")
                resp = await client.get(
                    "/send-message", params={"number": number, "message": text}
                )
            else:
                print(f"{YELLOW}Unknown command: {command}{RESET}\n")
                continue

            colour = GREEN if resp.status_code == 200 else RED
            print(f"{colour}{BOLD}{resp.status_code}{RESET} {resp.json()}\n")

    # Shut down the background server
    server.should_exit = True
    await server_task


if __name__ == "__main__":
    asyncio.run(main())
