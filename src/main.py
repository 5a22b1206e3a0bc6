# src/main.py — v2
"""CLI entry point: validate, decode, recalls, complaints, ratings, fuel.

Usage:
    vehicledata validate <vin>
    vehicledata decode <vin>
    vehicledata recalls <year> <make> <model>
    vehicledata fuel <year> <make> <model> [--cylinders N] [--displacement L]

Results are printed to stdout as JSON. Exit codes: 0 ok, 1 registry or
unexpected failure, 2 invalid VIN.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from pydantic_core import to_jsonable_python

from vehicledata.config.settings import ConfigurationError, Settings, load_settings
from vehicledata.core.errors import ExternalServiceError, VinValidationError
from vehicledata.version import __version__

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except (ConfigurationError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_FAILURE
    _setup_logging(settings, args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return EXIT_FAILURE

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except VinValidationError as exc:
        logger.error("Invalid VIN %r: %s", exc.vin, exc.message)
        return EXIT_INVALID
    except ExternalServiceError as exc:
        logger.error("%s", exc)
        return EXIT_FAILURE
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return EXIT_FAILURE


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="vehicledata",
        description=f"vehicledata v{__version__}: cached vehicle registry lookups",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_validate = subparsers.add_parser("validate", help="Check a VIN offline")
    p_validate.add_argument("vin")
    p_validate.set_defaults(func=_cmd_validate)

    p_decode = subparsers.add_parser("decode", help="Decode a VIN")
    p_decode.add_argument("vin")
    p_decode.set_defaults(func=_cmd_decode)

    for name, help_text in (
        ("recalls", "List recall campaigns"),
        ("complaints", "List consumer complaints"),
        ("ratings", "Show NCAP crash ratings"),
    ):
        p = subparsers.add_parser(name, help=help_text)
        _add_vehicle_args(p)
        p.set_defaults(func=_cmd_vehicle, capability=name)

    p_fuel = subparsers.add_parser(
        "fuel", help="Match a vehicle to EPA fuel economy data",
    )
    _add_vehicle_args(p_fuel)
    p_fuel.add_argument("--cylinders", type=int, default=None)
    p_fuel.add_argument("--displacement", type=float, default=None, help="Liters")
    p_fuel.set_defaults(func=_cmd_fuel)

    return parser


def _add_vehicle_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("year", type=int)
    parser.add_argument("make")
    parser.add_argument("model")


async def _cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    from vehicledata.vin.validator import (
        decode_model_year,
        get_vin_validation_error,
        parse_vin_structure,
    )

    error = get_vin_validation_error(args.vin)
    if error is not None:
        _emit({"vin": args.vin, "valid": False, "error": error})
        return EXIT_INVALID

    structure = parse_vin_structure(args.vin)
    _emit({
        "vin": args.vin,
        "valid": True,
        "structure": structure,
        "model_year": decode_model_year(structure.model_year_code) if structure else None,
    })
    return EXIT_OK


async def _cmd_decode(args: argparse.Namespace, settings: Settings) -> int:
    from vehicledata.api.facade import VehicleDataClient

    async with VehicleDataClient(settings) as client:
        _emit(await client.decode_vin(args.vin))
    return EXIT_OK


async def _cmd_vehicle(args: argparse.Namespace, settings: Settings) -> int:
    from vehicledata.api.facade import VehicleDataClient

    async with VehicleDataClient(settings) as client:
        if args.capability == "recalls":
            result: Any = await client.get_recalls(args.make, args.model, args.year)
        elif args.capability == "complaints":
            result = await client.get_complaints(args.make, args.model, args.year)
        else:
            result = await client.get_safety_ratings(args.year, args.make, args.model)
    _emit(result)
    return EXIT_OK


async def _cmd_fuel(args: argparse.Namespace, settings: Settings) -> int:
    from vehicledata.api.facade import VehicleDataClient

    async with VehicleDataClient(settings) as client:
        fuel_economy_id = await client.match_vehicle_to_fuel_economy(
            args.year, args.make, args.model,
            cylinders=args.cylinders, displacement=args.displacement,
        )
        record = None
        if fuel_economy_id is not None:
            record = await client.get_fuel_economy(fuel_economy_id)
    _emit({"fuel_economy_id": fuel_economy_id, "record": record})
    return EXIT_OK


def _emit(value: Any) -> None:
    print(json.dumps(to_jsonable_python(value), indent=2))


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from vehicledata.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
