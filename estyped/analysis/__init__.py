from estyped.analysis.analyzers import (
    ANALYZERS,
    Analyzer,
    CustomAnalyzer,
    FingerprintAnalyzer,
    KeywordAnalyzer,
    PatternAnalyzer,
    SimpleAnalyzer,
    StandardAnalyzer,
    StopAnalyzer,
    WhitespaceAnalyzer,
)
from estyped.analysis.char_filters import (
    CHAR_FILTERS,
    CharacterFilter,
    HTMLStripCharacterFilter,
    MappingCharacterFilter,
    PatternReplaceCharacterFilter,
)
from estyped.analysis.context import AnalysisContext
from estyped.analysis.filters import (
    TOKEN_FILTERS,
    ASCIIFoldingFilter,
    EdgeNGramFilter,
    LowercaseFilter,
    NGramFilter,
    ShingleFilter,
    StemmerFilter,
    StemmerLanguage,
    StopFilter,
    SynonymFilter,
    TokenFilter,
    UppercaseFilter,
)
from estyped.analysis.normalizers import NORMALIZERS, CustomNormalizer, LowercaseNormalizer, Normalizer
from estyped.analysis.tokenizers import (
    TOKENIZERS,
    EdgeNGramTokenizer,
    KeywordTokenizer,
    NGramTokenizer,
    PatternTokenizer,
    StandardTokenizer,
    Tokenizer,
    WhitespaceTokenizer,
)
