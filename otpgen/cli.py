from __future__ import annotations

import argparse
import logging
import logging.config
import sys
from typing import NoReturn

from otpgen.core.auth.totp import generate, seconds_remaining
from otpgen.core.codec import EXTENDED_HEX, STANDARD, Base32Codec
from otpgen.core.config.settings import Settings, get_settings
from otpgen.core.config.startup_log import log_startup_config
from otpgen.core.errors import NotFound, OtpError, error_envelope
from otpgen.core.utils.time import epoch_seconds, from_epoch_seconds
from otpgen.modules.secrets.repository import FileSecretRepository
from otpgen.modules.totp.service import build_totp_service

logger = logging.getLogger(__name__)


def _build_log_config(settings: Settings) -> dict:
    # Only the `otpgen.*` namespace is configured; stdout stays reserved for command output.
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "otpgen": {
                "handlers": ["default"],
                "level": settings.log_level,
                "propagate": False,
            },
        },
    }


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="otpgen", description="Time-based one-time passwords and base32 tools.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    code = subparsers.add_parser("code", help="Print the current code for a stored account.")
    code.add_argument("account_id")
    code.add_argument(
        "--remaining",
        action="store_true",
        help="Also print how many seconds the code stays valid.",
    )

    check = subparsers.add_parser("verify", help="Check a code against a stored account.")
    check.add_argument("account_id")
    check.add_argument("code")

    gen = subparsers.add_parser("generate", help="Print the code for an explicit base32 secret.")
    gen.add_argument("secret")
    gen.add_argument("--time", type=int, default=None, help="Unix timestamp (default: now).")
    gen.add_argument("--step", type=int, default=None, help="Time step in seconds.")
    gen.add_argument("--digits", type=int, default=None, choices=(6, 7, 8))

    encode = subparsers.add_parser("encode", help="Base32-encode stdin to stdout.")
    encode.add_argument("--wrap", action="store_true", help="Wrap output at 72 characters.")
    encode.add_argument("--hex", action="store_true", help="Use the extended hex alphabet.")

    decode = subparsers.add_parser("decode", help="Base32-decode stdin to stdout.")
    decode.add_argument("--hex", action="store_true", help="Use the extended hex alphabet.")

    subparsers.add_parser("list", help="List stored account ids.")

    return parser.parse_args(argv)


def _codec(use_hex: bool) -> Base32Codec:
    return EXTENDED_HEX if use_hex else STANDARD


def _fail(exc: OtpError) -> NoReturn:
    logger.debug("Command failed code=%s", exc.code, exc_info=exc)
    detail = error_envelope(exc)["error"]
    print(f"otpgen: {detail['code']}: {detail['message']}", file=sys.stderr)
    raise SystemExit(2 if isinstance(exc, NotFound) else 1)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    settings = get_settings()
    logging.config.dictConfig(_build_log_config(settings))
    log_startup_config()

    try:
        match args.command:
            case "code":
                result = build_totp_service(settings).totp_for(args.account_id)
                if args.remaining:
                    print(f"{result.code} {result.seconds_remaining}")
                else:
                    print(result.code)
            case "verify":
                outcome = build_totp_service(settings).verify_for(args.account_id, args.code)
                print("valid" if outcome.is_valid else "invalid")
                if not outcome.is_valid:
                    raise SystemExit(1)
            case "generate":
                step = args.step if args.step is not None else settings.step_seconds
                digits = args.digits if args.digits is not None else settings.digits
                now = args.time if args.time is not None else epoch_seconds()
                logger.debug("Generating code at=%s step=%d", from_epoch_seconds(now), step)
                print(generate(args.secret, now, step, digits))
                logger.debug("Code valid for %ds", seconds_remaining(now, step))
            case "encode":
                sys.stdout.write(_codec(args.hex).encode(sys.stdin.buffer.read(), wrap_lines=args.wrap))
                if not args.wrap:
                    sys.stdout.write("\n")
            case "decode":
                sys.stdout.buffer.write(_codec(args.hex).decode(sys.stdin.read()))
                sys.stdout.flush()
            case "list":
                for account_id in FileSecretRepository(settings.secrets_file).list_accounts():
                    print(account_id)
            case _:
                raise SystemExit(f"Unknown command: {args.command}")
    except OtpError as exc:
        _fail(exc)
    except ValueError as exc:
        raise SystemExit(f"otpgen: {exc}") from exc


if __name__ == "__main__":
    main()
