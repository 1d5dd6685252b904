from setuptools import setup

setup(
	name="sflang",
	version="0.1.0",
	description="Download localized text from the Soulframe CDN and extract it to JSON.",
	author="sflang developers",
	license="AGPL v3",
	packages=["sflang"],
	package_data={"sflang": ["data/languages.dict"]},
	python_requires=">=3.9",
	install_requires=[
		"requests",
		"zstandard",
	],
	extras_require={
		"test": ["pytest"],
	},
	entry_points={
		"console_scripts": [
			"sflang-download=sflang.download:main",
			"sflang-extract=sflang.extract:main",
		],
	},
)
