"""CLI entry-point: ``python -m tweettr generate`` / ``history`` / ``samples`` / …"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from tweettr import config
from tweettr.catalog import Catalog, load_catalog
from tweettr.credentials import CredentialStore
from tweettr.errors import TweettrError
from tweettr.generator import TweetGenerator
from tweettr.history import HistoryStore
from tweettr.kvstore import KeyValueStore, SQLiteKeyValueStore
from tweettr.models import GenerationOptions, HistoryItem, StyleSummary
from tweettr.prompts import DEFAULT_USER_MESSAGE
from tweettr.providers import PROVIDERS, ProviderDispatcher, parse_model_ref
from tweettr.samples import SampleLibrary, is_long_sample
from tweettr.saved_prompts import SavedPromptStore

logger = logging.getLogger(__name__)


def _setup_logging() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ── Rendering ──────────────────────────────────────────────────────────────


def _print_item(item: HistoryItem, full: bool = False) -> None:
    star = "*" if item.favorite else " "
    stamp = item.created_at.strftime("%Y-%m-%d %H:%M")
    n = len(item.variants)
    print(f"{star} {item.id}  {stamp}  {item.provider}:{item.model}  {n} variant{'s' if n != 1 else ''}")
    if not full:
        first = item.variants[0].tweet if item.variants else "No tweet generated"
        print(f"    {first.splitlines()[0] if first else ''}")
        return

    for idx, variant in enumerate(item.variants, start=1):
        print(f"\n--- Variant {idx} ({len(variant.tweet)} chars) ---")
        print(variant.tweet)
    if isinstance(item.style_summary, dict):
        summary = StyleSummary.model_validate(item.style_summary)
        print(f"\nStyle: tone={summary.tone or '-'}, avg_length={summary.avg_length:g}")
        if summary.common_hooks:
            print("Hooks: " + "; ".join(summary.common_hooks))


# ── Commands ───────────────────────────────────────────────────────────────


def _resolve_base_prompt(args: argparse.Namespace, catalog: Catalog, prompts: SavedPromptStore) -> str:
    if args.prompt_file:
        return Path(args.prompt_file).read_text(encoding="utf-8")
    if args.saved_prompt:
        saved = prompts.get(args.saved_prompt)
        if saved is None:
            raise ValueError(f"No saved prompt with id {args.saved_prompt}")
        return saved.prompt
    if args.template:
        template = catalog.template(args.template)
        if template is None:
            raise ValueError(f"Unknown template: {args.template}")
        return template.prompt
    return catalog.default_system_prompt


def _cmd_generate(args: argparse.Namespace, store: KeyValueStore) -> None:
    history = HistoryStore(store)
    generator = TweetGenerator(
        dispatcher=ProviderDispatcher(CredentialStore(store)),
        samples=SampleLibrary(store),
        history=history,
        store=store,
    )
    catalog = load_catalog(config.CATALOG_PATH)

    if args.rerun:
        item = generator.replay(args.rerun)
    else:
        provider, model = parse_model_ref(
            args.model or generator.last_model() or config.DEFAULT_MODEL_REF
        )
        options = GenerationOptions(
            tone=args.tone,
            char_target=args.chars,
            variants_requested=args.variants,
        )
        base_prompt = _resolve_base_prompt(args, catalog, SavedPromptStore(store))
        item = generator.generate(provider, model, base_prompt, options, instruction=args.message)

    logger.info("Generated %d variants!", len(item.variants))
    _print_item(item, full=True)


def _cmd_history(args: argparse.Namespace, store: KeyValueStore) -> None:
    history = HistoryStore(store)
    action = args.history_command

    if action == "list":
        items = history.list(query=args.search, favorites_only=args.favorites)
        if not items:
            print("No matching generations found" if args.search else "No generations yet")
        for item in items:
            _print_item(item)
    elif action == "show":
        item = history.get(args.id)
        if item is None:
            raise ValueError(f"No history item with id {args.id}")
        _print_item(item, full=True)
    elif action == "favorite":
        item = history.toggle_favorite(args.id)
        if item is None:
            raise ValueError(f"No history item with id {args.id}")
        logger.info("%s favorites", "Added to" if item.favorite else "Removed from")
    elif action == "delete":
        if not history.delete(args.id):
            logger.warning("No history item with id %s", args.id)
    elif action == "clear":
        history.clear()
        logger.info("History cleared")
    elif action == "export":
        items = None
        if args.ids:
            wanted = set(args.ids)
            items = [h for h in history.list() if h.id in wanted]
        document = history.export_all(items)
        if args.out:
            Path(args.out).write_text(document, encoding="utf-8")
            logger.info("Exported history to %s", args.out)
        else:
            print(document)
    elif action == "import":
        count = history.import_merge(Path(args.file).read_text(encoding="utf-8"))
        logger.info("History now holds %d item(s)", count)


def _cmd_samples(args: argparse.Namespace, store: KeyValueStore) -> None:
    library = SampleLibrary(store)
    action = args.samples_command

    if action == "list":
        for sample in library.list():
            flag = " (paraphrased)" if is_long_sample(sample.text) else ""
            print(f"{sample.id}  w={sample.weight:g}{flag}  {sample.text}")
    elif action == "add":
        if is_long_sample(args.text) and not args.allow_long:
            raise ValueError(
                "This sample is longer than 25 words and will be paraphrased. "
                "Re-run with --allow-long to add it anyway."
            )
        sample = library.add(
            args.text,
            weight=args.weight,
            source_label=args.source,
            style_summary=args.style,
        )
        print(sample.id)
    elif action == "remove":
        if not library.remove(args.id):
            logger.warning("No sample with id %s", args.id)
    elif action == "weight":
        sample = library.set_weight(args.id, args.weight)
        if sample is None:
            raise ValueError(f"No sample with id {args.id}")
        logger.info("Sample %s weight set to %g", sample.id, sample.weight)


def _cmd_keys(args: argparse.Namespace, store: KeyValueStore) -> None:
    credentials = CredentialStore(store)
    action = args.keys_command

    if action == "status":
        for status in credentials.status(PROVIDERS):
            state = f"{status.preview} ({status.source})" if status.is_configured else "not set"
            print(f"{status.provider:<10} {state}")
    elif action == "set":
        credentials.set_credential(args.provider, args.key)
    elif action == "clear":
        credentials.clear_credential(args.provider)


def _cmd_prompts(args: argparse.Namespace, store: KeyValueStore) -> None:
    prompts = SavedPromptStore(store)
    action = args.prompts_command

    if action == "list":
        for saved in prompts.list():
            print(f"{saved.id}  {saved.name}")
        for template in load_catalog(config.CATALOG_PATH).templates:
            print(f"(template)  {template.name}")
    elif action == "save":
        text = Path(args.file).read_text(encoding="utf-8")
        saved = prompts.upsert(args.name, text, prompt_id=args.id)
        print(saved.id)
    elif action == "delete":
        if not prompts.delete(args.id):
            logger.warning("No saved prompt with id %s", args.id)


def _cmd_models(args: argparse.Namespace, store: KeyValueStore) -> None:
    catalog = load_catalog(config.CATALOG_PATH)
    for entry in catalog.models:
        if args.provider and entry.provider != args.provider:
            continue
        print(f"{entry.ref:<40} {entry.display_name}")


_COMMANDS = {
    "generate": _cmd_generate,
    "history": _cmd_history,
    "samples": _cmd_samples,
    "keys": _cmd_keys,
    "prompts": _cmd_prompts,
    "models": _cmd_models,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tweettr",
        description="Generate tweet variants from a style configuration.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── generate ───────────────────────────────────────────────────────
    gen = sub.add_parser("generate", help="Generate tweet variants.")
    gen.add_argument("--model", help="provider:model (default: last used or TWEETTR_MODEL).")
    gen.add_argument("--tone", choices=["direct", "inspirational", "snarky"], default="direct")
    gen.add_argument("--chars", type=int, default=280, help="Target length, 100-280.")
    gen.add_argument("--variants", type=int, default=3, help="How many variants, 1-5.")
    gen.add_argument("--message", default=DEFAULT_USER_MESSAGE)
    source = gen.add_mutually_exclusive_group()
    source.add_argument("--prompt-file", help="Read the base system prompt from a file.")
    source.add_argument("--template", help="Use a named template from the catalog.")
    source.add_argument("--saved-prompt", help="Use a saved system prompt by id.")
    source.add_argument("--rerun", metavar="ID", help="Re-run a past generation.")

    # ── history ────────────────────────────────────────────────────────
    hist = sub.add_parser("history", help="Browse and manage past generations.")
    hsub = hist.add_subparsers(dest="history_command", required=True)
    hlist = hsub.add_parser("list")
    hlist.add_argument("--search", help="Case-insensitive text to match.")
    hlist.add_argument("--favorites", action="store_true")
    for name in ("show", "favorite", "delete"):
        hsub.add_parser(name).add_argument("id")
    hsub.add_parser("clear")
    hexp = hsub.add_parser("export")
    hexp.add_argument("--out", help="Write to this file instead of stdout.")
    hexp.add_argument("ids", nargs="*", help="Only export these items.")
    hsub.add_parser("import").add_argument("file")

    # ── samples ────────────────────────────────────────────────────────
    smp = sub.add_parser("samples", help="Manage style samples.")
    ssub = smp.add_subparsers(dest="samples_command", required=True)
    ssub.add_parser("list")
    sadd = ssub.add_parser("add")
    sadd.add_argument("text")
    sadd.add_argument("--weight", type=float, default=1.0)
    sadd.add_argument("--source", help="Where the sample came from.")
    sadd.add_argument("--style", help="Free-text style notes for this sample.")
    sadd.add_argument("--allow-long", action="store_true")
    ssub.add_parser("remove").add_argument("id")
    sweight = ssub.add_parser("weight")
    sweight.add_argument("id")
    sweight.add_argument("weight", type=float)

    # ── keys ───────────────────────────────────────────────────────────
    keys = sub.add_parser("keys", help="Manage provider API keys.")
    ksub = keys.add_subparsers(dest="keys_command", required=True)
    ksub.add_parser("status")
    kset = ksub.add_parser("set")
    kset.add_argument("provider", choices=PROVIDERS)
    kset.add_argument("key")
    ksub.add_parser("clear").add_argument("provider", choices=PROVIDERS)

    # ── prompts ────────────────────────────────────────────────────────
    prm = sub.add_parser("prompts", help="Manage saved system prompts.")
    psub = prm.add_subparsers(dest="prompts_command", required=True)
    psub.add_parser("list")
    psave = psub.add_parser("save")
    psave.add_argument("name")
    psave.add_argument("file")
    psave.add_argument("--id", help="Overwrite an existing saved prompt.")
    psub.add_parser("delete").add_argument("id")

    # ── models ─────────────────────────────────────────────────────────
    mdl = sub.add_parser("models", help="List models from the catalog.")
    mdl.add_argument("--provider", choices=PROVIDERS)

    return parser


def main(argv: list[str] | None = None, store: KeyValueStore | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    _setup_logging()
    if store is None:
        store = SQLiteKeyValueStore(config.DB_PATH)

    try:
        handler(args, store)
    except (TweettrError, ValueError, OSError) as exc:
        logger.error("%s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
