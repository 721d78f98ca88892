from pydantic import ValidationError
from pytest import raises

from estyped.analysis import (
    ANALYZERS,
    NORMALIZERS,
    TOKEN_FILTERS,
    TOKENIZERS,
    AnalysisContext,
    CustomAnalyzer,
    CustomNormalizer,
    HTMLStripCharacterFilter,
    LowercaseFilter,
    MappingCharacterFilter,
    NGramTokenizer,
    StandardTokenizer,
    StopFilter,
    SynonymFilter,
)
from estyped.analysis.filters import ASCIIFoldingFilter
from estyped.analysis.tokenizers import CharGroupTokenizer
from estyped.errors import ConflictingDefinition, DanglingReference, MalformedVariant

STOP = StopFilter(name="my_stop", stopwords=["a", "the"])
SYNONYMS = SynonymFilter(name="my_synonyms", synonyms=["car, automobile"])
TRIGRAMS = NGramTokenizer(name="trigrams", min_gram=3, max_gram=3)


def test_collect_dependencies():
    analyzer = CustomAnalyzer(name="my_analyzer", tokenizer=TRIGRAMS, filter=[LowercaseFilter(), STOP, SYNONYMS])
    other = CustomAnalyzer(name="other_analyzer", tokenizer=StandardTokenizer(), filter=[STOP])

    context = AnalysisContext()
    context.collect_all([analyzer, other])
    block = context.encode()
    assert block == {
        "analyzer": {
            "my_analyzer": {"type": "custom", "tokenizer": "trigrams", "filter": ["lowercase", "my_stop", "my_synonyms"]},
            "other_analyzer": {"type": "custom", "tokenizer": "standard", "filter": ["my_stop"]},
        },
        "tokenizer": {"trigrams": {"type": "ngram", "min_gram": 3, "max_gram": 3}},
        "filter": {
            "my_stop": {"type": "stop", "stopwords": ["a", "the"]},
            "my_synonyms": {"type": "synonym", "synonyms": ["car, automobile"]},
        },
    }
    # collecting again adds nothing
    context.collect(analyzer)
    assert context.encode() == block


def test_builtins_are_not_collected():
    analyzer = CustomAnalyzer(name="plain", tokenizer=StandardTokenizer(), filter=[LowercaseFilter(), ASCIIFoldingFilter()])
    context = AnalysisContext()
    context.collect(analyzer)
    assert context.encode() == {
        "analyzer": {"plain": {"type": "custom", "tokenizer": "standard", "filter": ["lowercase", "asciifolding"]}}
    }


def test_normalizer_dependencies():
    chars = MappingCharacterFilter(name="quotes", mappings=["« => \"", "» => \""])
    normalizer = CustomNormalizer(name="folded", char_filter=[chars, HTMLStripCharacterFilter()], filter=[LowercaseFilter()])
    context = AnalysisContext()
    context.collect(normalizer)
    assert context.definitions(NORMALIZERS) == {"folded": normalizer}
    assert context.lookup("char_filter", "quotes") == chars
    assert context.lookup("char_filter", "html_strip") is None


def test_conflicting_definition():
    context = AnalysisContext([STOP])
    assert context.add(StopFilter(name="my_stop", stopwords=["a", "the"])) is False
    with raises(ConflictingDefinition) as e:
        context.add(StopFilter(name="my_stop", stopwords=["een", "de"]))
    assert e.value.name == "my_stop"
    # the same name in another family is not a conflict
    assert context.add(NGramTokenizer(name="my_stop", min_gram=1, max_gram=2)) is True


def test_decode_block():
    block = {
        "analyzer": {"my_analyzer": {"type": "custom", "tokenizer": "trigrams", "filter": ["lowercase", "my_stop"]}},
        "tokenizer": {"trigrams": {"type": "ngram", "min_gram": 3, "max_gram": 3}},
        "filter": {"my_stop": {"type": "stop", "stopwords": ["a", "the"]}},
    }
    context = AnalysisContext.decode(block)
    analyzer = context.lookup(ANALYZERS, "my_analyzer")
    assert isinstance(analyzer, CustomAnalyzer)
    assert analyzer.tokenizer == TRIGRAMS
    assert analyzer.filter == [LowercaseFilter(), STOP]
    assert context.encode() == block


def test_dangling_reference():
    block = {"analyzer": {"broken": {"type": "custom", "tokenizer": "no_such_tokenizer"}}}
    with raises(DanglingReference) as e:
        AnalysisContext.decode(block)
    assert e.value.family == "tokenizer"
    assert e.value.name == "no_such_tokenizer"

    block = {"normalizer": {"broken": {"type": "custom", "filter": ["no_such_filter"]}}}
    with raises(DanglingReference):
        AnalysisContext.decode(block)


def test_resolve():
    context = AnalysisContext([STOP])
    assert context.resolve(TOKEN_FILTERS, "my_stop") == STOP
    assert context.resolve(TOKEN_FILTERS, "lowercase") == LowercaseFilter()
    assert context.resolve(TOKENIZERS, "standard") == StandardTokenizer()
    with raises(DanglingReference):
        context.resolve(TOKEN_FILTERS, "synonym")


def test_copy():
    context = AnalysisContext([STOP])
    copy = context.copy()
    copy.add(SYNONYMS)
    assert len(copy) == 2
    assert len(context) == 1


def test_value_invariants():
    with raises(ValidationError):
        SynonymFilter(name="syn")
    with raises(ValidationError):
        SynonymFilter(name="syn", synonyms=["a, b"], synonyms_path="synonyms.txt")
    with raises(ValidationError):
        MappingCharacterFilter(name="m", mappings=["a => b"], mappings_path="mappings.txt")
    with raises(ValidationError):
        NGramTokenizer(name="grams", min_gram=4, max_gram=2)


def test_references_need_names():
    with raises(ValidationError):
        CustomAnalyzer(name="dashes", tokenizer=CharGroupTokenizer(tokenize_on_chars=["-"]))
    with raises(ValidationError):
        CustomNormalizer(name="quotes", char_filter=[MappingCharacterFilter(mappings=["« => \""])])
    dashes = CustomAnalyzer(name="dashes", tokenizer=CharGroupTokenizer(name="dash", tokenize_on_chars=["-"]))
    assert dashes.encode() == {"type": "custom", "tokenizer": "dash"}
    with raises(MalformedVariant):
        AnalysisContext().add(CharGroupTokenizer(tokenize_on_chars=["-"]))


def test_builtin_names_are_reserved():
    context = AnalysisContext()
    with raises(ConflictingDefinition) as e:
        context.collect(CustomAnalyzer(name="standard", tokenizer=TRIGRAMS))
    assert e.value.family == "analyzer"
    # unconfigured builtins passed to the context are not definitions
    assert len(AnalysisContext([LowercaseFilter(), StandardTokenizer(), STOP])) == 1
