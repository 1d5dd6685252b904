"""
Settings shared by the download and extract commands, read from sflang.ini.

	[paths]
	download_dir = downloaded-data
	extract_dir = extracted-data
	lib_dir =

	[cdn]
	base_url = https://content.soulframe.com
	mirrors = https://origin.soulframe.com
	timeout = 30

	[locales]
	default = en,fr,de,es,it,pt,ru,pl,tr,ja,ko,zh
	alias = en
"""
import configparser
import os

DEFAULT_CONFIG_PATH = "sflang.ini"

DEFAULTS = {
	"paths": {
		"download_dir": "downloaded-data",
		"extract_dir": "extracted-data",
		"lib_dir": "",
	},
	"cdn": {
		"base_url": "https://content.soulframe.com",
		"mirrors": "https://origin.soulframe.com",
		"timeout": "30",
	},
	"locales": {
		"default": "en,fr,de,es,it,pt,ru,pl,tr,ja,ko,zh",
		"alias": "en",
	},
}

def load_config(path=None) -> configparser.ConfigParser:
	"""
	Read the config file over the built-in defaults.
	An explicitly given path has to exist, the default sflang.ini in the working directory is optional.
	"""
	config = configparser.ConfigParser()
	config.read_dict(DEFAULTS)
	if path is not None:
		with open(path, encoding="utf-8") as file:
			config.read_file(file)
	elif os.path.isfile(DEFAULT_CONFIG_PATH):
		config.read(DEFAULT_CONFIG_PATH, encoding="utf-8")
	return config

def split_list(value: str):
	return [item.strip() for item in value.split(",") if item.strip()]

def locales(config, override=None):
	return split_list(override if override is not None else config["locales"]["default"])

def base_urls(config):
	"""The primary CDN first, then the mirrors to try when it fails."""
	urls = [config["cdn"]["base_url"]]
	for mirror in split_list(config["cdn"]["mirrors"]):
		if mirror not in urls:
			urls.append(mirror)
	return urls

def lib_dir(config):
	return config["paths"]["lib_dir"] or None
