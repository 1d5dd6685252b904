"""
JSON output of decoded string tables.

JSON object member order isn't something consumers can rely on, so the key order is written out
separately as "__order" next to the "strings" mapping.
"""
import json
import logging
import os
import shutil

log = logging.getLogger(__name__)

ORDER_KEY = "__order"
STRINGS_KEY = "strings"
ALIAS_FILENAME = "Languages.json"

def serialize(table) -> str:
	order = list(table)
	document = {ORDER_KEY: order, STRINGS_KEY: {key: str(table[key]) for key in order}}
	return json.dumps(document, ensure_ascii=False, indent=2)

def read_order(text: str):
	"""Returns the keys and the mapping of a serialized table, keys in their original order."""
	document = json.loads(text)
	order = document[ORDER_KEY]
	strings = document[STRINGS_KEY]
	if len(order) != len(strings) or set(order) != set(strings):
		raise ValueError("__order doesn't match the keys of the strings mapping")
	return order, strings

def locale_filename(locale: str) -> str:
	return locale+".json"

def write_locale(table, out_dir, locale: str) -> str:
	os.makedirs(out_dir, exist_ok=True)
	out_path = os.path.join(out_dir, locale_filename(locale))
	with open(out_path, "w", encoding="utf-8") as file:
		file.write(serialize(table))
	return out_path

def write_alias(out_dir, locales, default="en"):
	"""
	Write Languages.json with the content of the default locale's file, or of the first locale if the default isn't among them.
	Returns the locale the alias points to, or None if there were no locales.
	"""
	locales = list(locales)
	if not locales:
		return None
	target = default if default in locales else locales[0]
	shutil.copyfile(os.path.join(out_dir, locale_filename(target)), os.path.join(out_dir, ALIAS_FILENAME))
	log.debug("%s -> %s", ALIAS_FILENAME, locale_filename(target))
	return target
