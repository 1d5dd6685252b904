"""
Download the localized Languages.bin for each locale.

The root manifest lists one manifest per locale, which in turn lists that locale's Languages.bin.
Each locale is handled on its own, a failure is reported and the next locale is tried.
"""
import argparse
import logging
import os
import sys

from . import config as config_
from .b64m import UNKNOWN_HASH
from .context import DecoderContext
from .errors import DecodeError, FetchError, LibraryNotFound, TransportError
from .fetch import fetch, FetchOutcome, HttpTransport, TYPE_BIN, TYPE_MANIFEST, UrlBuilder
from .manifest import locale_manifest_path, ManifestEntry, parse_manifest, ROOT_MANIFEST

log = logging.getLogger(__name__)

LANGUAGES_PATH = "/Languages.bin"

def locale_dir(root_dir, locale=None) -> str:
	if locale:
		return os.path.join(root_dir, "0_"+locale)
	return os.path.join(root_dir, "0")

class Downloader:
	def __init__(self, download_dir, transport, context, base_urls=(config_.DEFAULTS["cdn"]["base_url"],)):
		self.download_dir = download_dir
		self.transport = transport
		self.context = context
		self.base_urls = list(base_urls)

	def fetch(self, entry, locale=None, type_tag=TYPE_BIN) -> FetchOutcome:
		"""Fetch from the CDN, falling back to the mirrors if the request itself fails."""
		destination = locale_dir(self.download_dir, locale)
		for index, base_url in enumerate(self.base_urls):
			try:
				return fetch(entry, destination, UrlBuilder(base_url, locale), self.transport, type_tag, self.context.decompress_a)
			except TransportError as e:
				if index == len(self.base_urls)-1:
					raise
				log.warning("%s, trying %s", e, self.base_urls[index+1])

	def read_manifest(self, path, locale=None):
		file_path = os.path.join(locale_dir(self.download_dir, locale), *path.lstrip("/").split("/"))
		with open(file_path, "rb") as file:
			data = file.read()
		try:
			return parse_manifest(self.context.unpack_blob(data))
		except DecodeError as e:
			e.path = path
			raise

	def download_root(self):
		self.fetch(ManifestEntry(ROOT_MANIFEST, UNKNOWN_HASH, 0, 0), type_tag=TYPE_MANIFEST)
		return self.read_manifest(ROOT_MANIFEST)

	def download_locale(self, root, locale: str) -> FetchOutcome:
		manifest_path = locale_manifest_path(locale)
		entry = root.get(manifest_path)
		if entry is None:
			raise FetchError("not listed in the root manifest", manifest_path)
		self.fetch(entry, type_tag=TYPE_MANIFEST)
		manifest = self.read_manifest(manifest_path)

		entry = manifest.get(LANGUAGES_PATH)
		if entry is None:
			raise FetchError("not listed in "+manifest_path, LANGUAGES_PATH)
		return self.fetch(entry, locale, TYPE_BIN)

def main(argv=None) -> int:
	parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
	parser.add_argument("-l", "--locales", help="Comma-separated locales to download, defaults to the configured list")
	parser.add_argument("--config", help="Path of the config file, defaults to "+config_.DEFAULT_CONFIG_PATH)
	parser.add_argument("-v", "--verbose", action="store_true", help="Log every request and chunk")
	args = parser.parse_args(argv)

	logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
	config = config_.load_config(args.config)
	download_dir = config["paths"]["download_dir"]

	print("=== Language downloader ===")
	try:
		context = DecoderContext.open(config_.lib_dir(config))
	except LibraryNotFound as e:
		print(e)
		return 2

	failed = []
	with context, HttpTransport(config["cdn"].getfloat("timeout")) as transport:
		downloader = Downloader(download_dir, transport, context, config_.base_urls(config))
		print("Downloading root manifest", ROOT_MANIFEST)
		try:
			root = downloader.download_root()
		except (DecodeError, FetchError, OSError) as e:
			log.error("root manifest failed: %s", e)
			print("x Failed to obtain", ROOT_MANIFEST+":", e)
			return 1
		print("Root manifest lists", len(root), "files")

		for locale in config_.locales(config, args.locales):
			print("\n--- Locale:", locale, "---")
			try:
				outcome = downloader.download_locale(root, locale)
			except (DecodeError, FetchError, OSError) as e:
				log.error("locale %s failed: %s", locale, e)
				print("  x", LANGUAGES_PATH, "failed for", locale+":", e)
				failed.append(locale)
				continue
			if outcome == FetchOutcome.Skipped:
				print("  ✓", LANGUAGES_PATH, "already up to date for", locale)
			else:
				print("  ✓", LANGUAGES_PATH, "downloaded for", locale)

	print("\nFiles saved to", download_dir)
	if failed:
		print("Failed locales:", ", ".join(failed))
		return 1
	return 0

if __name__ == "__main__":
	sys.exit(main())
