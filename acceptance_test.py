"""
Wildberries MCP Server - Live Acceptance Suite

Drives the stdio server end to end against the real storefront:

    python acceptance_test.py [--docker] [--query "кружка"] [--address "Москва"]
"""
import argparse
import json
import os
import subprocess
import sys
import threading
import time
from typing import Any, Callable, Dict, Optional

from dotenv import load_dotenv

load_dotenv()

# --- Config & Args ---
parser = argparse.ArgumentParser(description="Run MCP Acceptance Tests")
parser.add_argument("--docker", action="store_true", help="Run tests against Docker container")
parser.add_argument("--query", default="кружка", help="Search query used by the search/filters tests")
parser.add_argument("--address", default="Москва", help="Address used by the destination test")
args = parser.parse_args()

ENV = os.environ.copy()
ENV["PYTHONUTF8"] = "1"
ENV["PYTHONUNBUFFERED"] = "1"

# --- Colors ---
GREEN = "\033[92m"
RED = "\033[91m"
CYAN = "\033[96m"
YELLOW = "\033[93m"
RESET = "\033[0m"


class SkipTest(Exception):
    pass


class MCPClientSimulator:
    def __init__(self):
        cmd = ["docker", "run", "-i", "--rm"] if args.docker else [sys.executable, "-m", "wb_mcp.main"]

        # In Docker mode, pass env vars
        if args.docker:
            for k, v in ENV.items():
                if k.startswith(("WB_", "MCP_")):
                    cmd.extend(["-e", f"{k}={v}"])
            cmd.append("wb-mcp-server")  # Image name

        print(f"🚀 Launching Server: {' '.join(cmd)}")

        self.process = subprocess.Popen(
            cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=ENV if not args.docker else None,
        )
        self.msg_id = 0

        self.log_thread = threading.Thread(target=self._print_stderr, daemon=True)
        self.log_thread.start()

        time.sleep(3 if args.docker else 1)
        if self.process.poll() is not None:
            raise RuntimeError(f"Server exited immediately. Code {self.process.returncode}")

    def _print_stderr(self):
        if self.process.stderr:
            for line in self.process.stderr:
                print(f"{YELLOW}[SERVER] {line.strip()}{RESET}")

    def notify(self, method: str) -> None:
        assert self.process.stdin is not None, "stdin is None"
        self.process.stdin.write(json.dumps({"jsonrpc": "2.0", "method": method}) + "\n")
        self.process.stdin.flush()

    def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if self.process.poll() is not None:
            raise RuntimeError(f"Server died (Code {self.process.returncode})")

        assert self.process.stdin is not None, "stdin is None"
        assert self.process.stdout is not None, "stdout is None"

        self.msg_id += 1
        payload = {"jsonrpc": "2.0", "id": self.msg_id, "method": method, "params": params or {}}

        try:
            self.process.stdin.write(json.dumps(payload, ensure_ascii=False) + "\n")
            self.process.stdin.flush()
        except OSError as e:
            raise RuntimeError(f"Write failed: {e}")

        while True:
            line = self.process.stdout.readline()
            if not line:
                if self.process.poll() is not None:
                    raise RuntimeError(f"Server exited code {self.process.returncode}")
                continue

            try:
                msg = json.loads(line)
            except json.JSONDecodeError:
                continue
            if msg.get("id") == self.msg_id:
                if "error" in msg:
                    raise RuntimeError(f"RPC Error: {msg['error']}")
                return msg.get("result", {})

    def call_tool(self, name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Call a tool and return its decoded ok/error payload."""
        res = self.send("tools/call", {"name": name, "arguments": arguments})
        text = res.get("content", [{"text": "{}"}])[0]["text"]
        return json.loads(text)

    def close(self):
        if self.process:
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()


# --- Test Logics ---

def run_test_case(name: str, func: Callable):
    print(f"\n{CYAN}🔄 [TEST] {name}...{RESET}")
    try:
        func()
        print(f"{GREEN}✅ [PASS] {name}{RESET}")
        return True
    except SkipTest as e:
        print(f"{YELLOW}⚠️  [SKIP] {e}{RESET}")
        return True
    except Exception as e:
        print(f"{RED}❌ [FAIL] {name}: {e}{RESET}")
        return False


def test_handshake(client):
    res = client.send("initialize", {
        "protocolVersion": "2025-03-26",
        "capabilities": {},
        "clientInfo": {"name": "tester", "version": "1.0"},
    })
    print(f"   Server: {res.get('serverInfo')}")
    client.notify("notifications/initialized")


def test_list_tools(client):
    res = client.send("tools/list")
    names = [t["name"] for t in res.get("tools", [])]
    print(f"   Tools: {', '.join(names)}")
    expected = {"wb_search", "wb_product_details", "wb_products_list", "wb_set_destination", "wb_get_filters"}
    if not expected.issubset(names):
        raise ValueError(f"Missing tools: {expected - set(names)}")


def test_set_destination(client):
    payload = client.call_tool("wb_set_destination", {"address": args.address})
    output = payload.get("output") or {}
    if not output.get("success"):
        raise SkipTest(f"Geo lookup failed for {args.address!r}: {output.get('error')}")
    print(f"   dest={output['dest']} ({output['address']})")


def test_search(client, found: Dict[str, Any]):
    payload = client.call_tool("wb_search", {"query": args.query, "limit": 5})
    if not payload.get("ok"):
        raise ValueError(f"Search failed: {payload.get('error')}")
    products = payload["output"]["products"]
    print(f"   {len(products)} products")
    if len(products) > 5:
        raise ValueError("limit not honoured")
    for p in products[:3]:
        print(f"   - {p['id']}: {p['name']} | {p['priceFormatted']}")
    found["ids"] = [p["id"] for p in products if p.get("id")]


def test_product_details(client, found: Dict[str, Any]):
    if not found.get("ids"):
        raise SkipTest("No product ids from search")
    payload = client.call_tool("wb_product_details", {"productId": str(found["ids"][0])})
    if not payload.get("ok"):
        raise ValueError(f"Details failed: {payload.get('error')}")
    product = payload["output"]["product"]
    print(f"   {product['name']}: {product['priceFinal']} ₽, discount {product['discount']}%")
    print(f"   {len(product['characteristics'])} characteristics, {len(product['images'])} images")


def test_products_list(client, found: Dict[str, Any]):
    if not found.get("ids"):
        raise SkipTest("No product ids from search")
    ids = [str(i) for i in found["ids"][:3]]
    payload = client.call_tool("wb_products_list", {"productIds": ids})
    print(f"   {payload['output']['count']} of {len(ids)} products resolved")


def test_not_found(client):
    payload = client.call_tool("wb_product_details", {"productId": "1"})
    if payload.get("ok") or payload["error"]["type"] != "not_found":
        raise ValueError(f"Expected not_found, got {payload}")


def test_get_filters(client):
    payload = client.call_tool("wb_get_filters", {"query": args.query})
    output = payload["output"]
    print(f"   Filters: {', '.join(output['availableFilters'][:8]) or '(none)'}")


def main():
    print(f"{CYAN}🚀 Wildberries MCP Acceptance (v1.0.0){RESET}")
    sim = None
    found: Dict[str, Any] = {}
    results = []
    try:
        sim = MCPClientSimulator()
        results.append(run_test_case("Handshake", lambda: test_handshake(sim)))
        results.append(run_test_case("List Tools", lambda: test_list_tools(sim)))
        results.append(run_test_case("Set Destination", lambda: test_set_destination(sim)))
        results.append(run_test_case("Search", lambda: test_search(sim, found)))
        results.append(run_test_case("Product Details", lambda: test_product_details(sim, found)))
        results.append(run_test_case("Products List", lambda: test_products_list(sim, found)))
        results.append(run_test_case("Not Found", lambda: test_not_found(sim)))
        results.append(run_test_case("Filters", lambda: test_get_filters(sim)))
        print(f"\n{GREEN}✨ DONE. {sum(results)}/{len(results)} passed.{RESET}")
    except Exception as e:
        print(f"\n{RED}❌ FATAL: {e}{RESET}")
    finally:
        if sim:
            sim.close()
    return 0 if results and all(results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
