"""
Extract downloaded Languages.bin files to one JSON file per locale.
"""
import argparse
import logging
import os
import sys

from . import config as config_
from .context import DecoderContext
from .download import LANGUAGES_PATH, locale_dir
from .errors import DecodeError, LibraryNotFound
from .output import ALIAS_FILENAME, write_alias, write_locale

log = logging.getLogger(__name__)

def languages_file(download_dir, locale: str) -> str:
	return os.path.join(locale_dir(download_dir, locale), LANGUAGES_PATH.lstrip("/"))

def extract_locale(context, download_dir, out_dir, locale: str):
	"""Returns the path of the written JSON file and the number of strings in it."""
	with open(languages_file(download_dir, locale), "rb") as file:
		data = file.read()
	try:
		table = context.decode_strings(context.unpack_blob(data))
	except DecodeError as e:
		e.path = "0_"+locale+LANGUAGES_PATH
		raise
	return write_locale(table, out_dir, locale), len(table)

def main(argv=None) -> int:
	parser = argparse.ArgumentParser(description=__doc__.strip())
	parser.add_argument("-l", "--locales", help="Comma-separated locales to extract, defaults to the configured list")
	parser.add_argument("--config", help="Path of the config file, defaults to "+config_.DEFAULT_CONFIG_PATH)
	parser.add_argument("-v", "--verbose", action="store_true", help="Log every chunk")
	args = parser.parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
	config = config_.load_config(args.config)
	download_dir = config["paths"]["download_dir"]
	out_dir = os.path.join(config["paths"]["extract_dir"], "Languages")

	print("=== Extract Languages.bin -> JSON ===")
	present = [locale for locale in config_.locales(config, args.locales) if os.path.isfile(languages_file(download_dir, locale))]
	if not present:
		print("No downloaded Languages.bin found. Run sflang-download first.")
		return 0
	print("Found", len(present), "locales to extract:", ", ".join(present))

	try:
		context = DecoderContext.open(config_.lib_dir(config))
	except LibraryNotFound as e:
		print(e)
		return 2

	extracted = []
	failed = []
	with context:
		for locale in present:
			try:
				out_path, count = extract_locale(context, download_dir, out_dir, locale)
			except (DecodeError, OSError) as e:
				log.error("locale %s failed: %s", locale, e)
				print("  x", locale+":", e)
				failed.append(locale)
				continue
			print("  ✓", count, "strings ->", out_path)
			extracted.append(locale)

	target = write_alias(out_dir, extracted, config["locales"]["alias"])
	if target is not None:
		print("Alias written:", ALIAS_FILENAME, "->", target+".json")

	print("\nDone. Output under", out_dir)
	if failed:
		print("Failed locales:", ", ".join(failed))
		return 1
	return 0

if __name__ == "__main__":
	sys.exit(main())
