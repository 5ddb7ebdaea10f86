# =============================================================================
# core/local_tools.py  —  Tools that never leave the process
# =============================================================================
#
#   greeting     → say hello in Korean or English
#   calculator   → + - × ÷ on two numbers
#   get_time     → current wall-clock time in an IANA time zone
#   find_primes  → every prime in a closed integer range
#
# All four are pure (or, for get_time, clock-dependent) computations that
# run to completion without awaiting anything.  Business-rule failures are
# raised as DomainError; the dispatcher turns them into the error envelope.
#
# Each tool is split in two:
#   - a plain function doing the work (easy to unit test)
#   - a `*_handler(args, ctx)` adapter the registry calls
# =============================================================================

import math
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core import contracts as c
from core.errors import DomainError
from core.models import InvocationResult
from core.registry import ToolContext, ToolDefinition


# =============================================================================
# greeting
# =============================================================================
_GREETINGS = {
    "ko": "안녕하세요, {name}님! 😊",
    "en": "Hello, {name}! 👋",
}


def greet(name: str, language: str = "ko") -> str:
    return _GREETINGS[language].replace("{name}", name)


def greeting_handler(args: dict, ctx: ToolContext) -> InvocationResult:
    return InvocationResult.text(greet(args["name"], args["language"]))


GREETING = ToolDefinition(
    name="greeting",
    description="Greet someone by name in Korean or English.",
    input_contract=c.InputContract(fields=(
        c.string("name", "Name of the person to greet"),
        c.enum("language", ["ko", "en"], "Greeting language (default: ko)", default="ko"),
    )),
    handler=greeting_handler,
)


# =============================================================================
# calculator
# =============================================================================
_OPERATION_SYMBOLS = {
    "add": "+",
    "subtract": "-",
    "multiply": "×",
    "divide": "÷",
}

_TOO_LARGE = "The result is too large to represent"


def calculate(operation: str, a, b):
    """Apply `operation` to a and b.

    Raises DomainError for division by zero and for results that cannot be
    represented as a finite float, including integer operands too large to
    convert.  A caller never sees Infinity or NaN.
    """
    if operation not in _OPERATION_SYMBOLS:
        raise DomainError(f"Unsupported operation: {operation}")
    if operation == "divide" and b == 0:
        raise DomainError("Cannot divide by zero")

    try:
        if operation == "add":
            result = a + b
        elif operation == "subtract":
            result = a - b
        elif operation == "multiply":
            result = a * b
        else:
            result = a / b
        finite = math.isfinite(result)
    except OverflowError as exc:
        raise DomainError(_TOO_LARGE) from exc

    if not finite:
        raise DomainError(_TOO_LARGE)
    return result


def format_number(value) -> str:
    """Render integral floats without a trailing '.0' (4.0 → '4')."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def calculator_handler(args: dict, ctx: ToolContext) -> InvocationResult:
    operation, a, b = args["operation"], args["a"], args["b"]
    result = calculate(operation, a, b)
    symbol = _OPERATION_SYMBOLS[operation]
    return InvocationResult.text(
        f"{format_number(a)} {symbol} {format_number(b)} = {format_number(result)}"
    )


CALCULATOR = ToolDefinition(
    name="calculator",
    description="Perform a basic arithmetic operation on two numbers.",
    input_contract=c.InputContract(fields=(
        c.enum("operation", list(_OPERATION_SYMBOLS),
               "Operation to perform (add, subtract, multiply, divide)"),
        c.number("a", "First number"),
        c.number("b", "Second number"),
    )),
    handler=calculator_handler,
)


# =============================================================================
# get_time
# =============================================================================
def resolve_zone(name: str) -> ZoneInfo:
    key = (name or "").strip()
    if not key:
        raise DomainError("A time zone name is required (e.g. 'Asia/Seoul')")
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        raise DomainError(f"Unknown time zone: '{key}'") from None


def format_time(zone_name: str, now: datetime) -> str:
    """Format `now` (an aware datetime) in the named zone.

    Example: '2025-01-05 15:04:05 Asia/Seoul (UTC+09:00)'
    """
    zone = resolve_zone(zone_name)
    local = now.astimezone(zone)
    offset = local.strftime("%z")            # +0900
    offset = f"{offset[:3]}:{offset[3:]}" if offset else "+00:00"
    return f"{local:%Y-%m-%d %H:%M:%S} {zone.key} (UTC{offset})"


def get_time_handler(args: dict, ctx: ToolContext) -> InvocationResult:
    return InvocationResult.text(format_time(args["timeZone"], datetime.now(timezone.utc)))


GET_TIME = ToolDefinition(
    name="get_time",
    description="Get the current date and time in an IANA time zone (e.g. 'Asia/Seoul').",
    input_contract=c.InputContract(fields=(
        c.string("timeZone", "IANA time zone name"),
    )),
    handler=get_time_handler,
)


# =============================================================================
# find_primes
# =============================================================================
PRIME_RANGE_MAX = 100_000


def primes_in_range(start: int, end: int) -> list[int]:
    """Return every prime p with start <= p <= end, ascending.

    Sieve of Eratosthenes over [0, end].  Numbers below 2 are never prime.
    """
    if start > end:
        raise DomainError(f"Invalid range: start ({start}) is greater than end ({end})")
    if end < 2:
        return []

    sieve = bytearray([1]) * (end + 1)
    sieve[0] = sieve[1] = 0
    for n in range(2, math.isqrt(end) + 1):
        if sieve[n]:
            sieve[n * n::n] = bytes(len(range(n * n, end + 1, n)))
    return [n for n in range(max(start, 2), end + 1) if sieve[n]]


def find_primes_handler(args: dict, ctx: ToolContext) -> InvocationResult:
    start, end = args["start"], args["end"]
    primes = primes_in_range(start, end)
    if not primes:
        return InvocationResult.text(f"No primes between {start} and {end}.")
    listing = ", ".join(str(p) for p in primes)
    return InvocationResult.text(
        f"Found {len(primes)} primes between {start} and {end}: {listing}"
    )


FIND_PRIMES = ToolDefinition(
    name="find_primes",
    description="List every prime number in the closed range [start, end].",
    input_contract=c.InputContract(fields=(
        c.integer("start", "Start of the range (inclusive)", minimum=0, maximum=PRIME_RANGE_MAX),
        c.integer("end", "End of the range (inclusive)", minimum=0, maximum=PRIME_RANGE_MAX),
    )),
    handler=find_primes_handler,
)
