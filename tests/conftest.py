import pytest

from sflang.context import DecoderContext, load_dictionary

from builders import StubDecompressor

@pytest.fixture(scope="session")
def dictionary():
	return load_dictionary()

@pytest.fixture
def stub_a():
	return StubDecompressor()

@pytest.fixture
def context(stub_a, dictionary):
	return DecoderContext(stub_a, dictionary=dictionary)
