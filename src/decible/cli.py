"""
Command-Line Interface for decible.

Browse the voice catalog and generate speech without running the HTTP
server.

Usage Examples:
    # List the catalog (filters match the /api/voices query)
    decible --voices --category Documentary --language English

    # Same, as the JSON the API would return
    decible --voices --search british --json

    # Plan prices; the currency comes from --currency, the geo endpoint
    # behind --api-url, or the configured default country
    decible --pricing --currency USD
    decible --pricing --api-url http://localhost:8000

    # Voices available on the provider account
    decible --provider-voices

    # Generate speech to a file
    decible --text "Hello from decible" --voice rachel --out hello.mp3

Environment Variables:
    DECIBLE_SETTINGS: Settings file (default config/settings.yaml)
    DECIBLE_PROVIDER_API_KEY / ELEVENLABS_API_KEY: Provider key
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from decible.api.dependencies import get_settings
from decible.catalog.query import DEFAULT_CATALOG, QueryFilters
from decible.core.logging import configure_logging, get_logger, info, set_request_id
from decible.services.errors import DecibleError
from decible.services.generation import GenerationService
from decible.services.geo import Currency, CurrencyResolver, GeoApiClient, currency_for_country
from decible.services.models import GenerationRequest
from decible.services.pricing import pricing_for
from decible.tts.provider import SpeechProvider


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="decible CLI (catalog and speech generation)")

    # Catalog
    parser.add_argument("--voices", action="store_true", help="List catalog voices")
    parser.add_argument("--category", help="Catalog category filter")
    parser.add_argument("--language", help="Catalog language filter")
    parser.add_argument("--use-case", dest="use_case", help="Catalog use-case filter")
    parser.add_argument("--search", help="Free-text catalog search")
    parser.add_argument("--provider-voices", action="store_true",
                        help="List voices available on the provider account")

    # Pricing
    parser.add_argument("--pricing", action="store_true", help="Show plan prices")
    parser.add_argument("--currency", help="Currency for --pricing (INR or USD)")
    parser.add_argument("--api-url", help="decible API root used to look up the caller country")

    # Generation
    parser.add_argument("text_pos", nargs="?", help="Text to speak (positional)")
    parser.add_argument("--text", help="Text to speak")
    parser.add_argument("--voice", help="Catalog voice id or provider voice id")
    parser.add_argument("--out", help="Output MP3 path (default out.mp3)")

    parser.add_argument("--json", action="store_true", help="Print JSON output")

    return parser.parse_args(argv)


def _print_voices(args: argparse.Namespace) -> int:
    filters = QueryFilters.from_params(
        category=args.category,
        language=args.language,
        use_case=args.use_case,
        search=args.search,
    )
    result = DEFAULT_CATALOG.query(filters)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False))
        return 0

    for voice in result.voices:
        r = voice.record
        print(f"{r.id:<12} {r.name:<22} {r.category.value:<14} {r.language:<10} {r.accent}")
    print(f"{result.total}/{result.total_all} voices")
    return 0


def _print_provider_voices(provider: SpeechProvider, as_json: bool) -> int:
    voices = provider.list_voices()
    if as_json:
        print(json.dumps({"voices": voices}, ensure_ascii=False))
        return 0
    for voice in voices:
        print(f"{voice['id']:<24} {voice['name']:<20} {voice.get('category') or ''}")
    print(f"{len(voices)} voices")
    return 0


def _select_currency(args: argparse.Namespace, default_country: str) -> Currency:
    explicit = Currency.parse(args.currency)
    if explicit is not None:
        return explicit
    if not args.api_url:
        return currency_for_country(default_country)

    geo = GeoApiClient(args.api_url)
    try:
        return CurrencyResolver(geo.fetch_country, session={}).resolve()
    finally:
        geo.close()


def _print_pricing(currency: Currency, as_json: bool) -> int:
    plans = pricing_for(currency)
    if as_json:
        print(json.dumps({"currency": currency.value, "plans": plans}, ensure_ascii=False))
        return 0
    for plan in plans:
        line = f"{plan['name']:<10} {plan['formattedPrice']:>8}/mo  {plan['credits']:>9,} credits"
        if plan["formattedFirstMonthPrice"]:
            line += f"  (first month {plan['formattedFirstMonthPrice']})"
        print(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 on a service error).
    """
    args = _parse_args(argv)

    if args.voices:
        return _print_voices(args)

    if args.pricing:
        config = get_settings().get_app_config()
        return _print_pricing(_select_currency(args, config.geo.default_country), args.json)

    configure_logging()
    log = get_logger("decible.cli")
    set_request_id(str(uuid4())[:12])

    config = get_settings().get_app_config()
    provider = SpeechProvider.from_config(config.provider)
    try:
        if args.provider_voices:
            return _print_provider_voices(provider, args.json)

        text = args.text or args.text_pos
        if not text or not args.voice:
            raise SystemExit("Provide --text (or positional text) and --voice.")

        service = GenerationService(provider, config)
        result = service.synthesize(GenerationRequest(text=text, voice_id=args.voice))

        out_path = Path(args.out or "out.mp3")
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(result.audio)
        info(log, "written", out=str(out_path), bytes=len(result.audio))

        payload = {
            "ok": True,
            "out": str(out_path),
            "bytes": len(result.audio),
            "characters": result.characters,
            "voice": result.voice_id,
        }
        print(json.dumps(payload, ensure_ascii=False) if args.json else payload)
        return 0
    except DecibleError as e:
        print(json.dumps(e.to_dict(), ensure_ascii=False))
        return 1
    finally:
        provider.close()


if __name__ == "__main__":
    raise SystemExit(main())
