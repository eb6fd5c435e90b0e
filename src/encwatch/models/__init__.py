"""Language models and n-gram scoring utilities.

A model describes what correctly decoded text in one language looks like,
restricted to the characters outside ASCII: every encoding handled by the
statistical stage agrees with ASCII on the lower half, so only the upper
half carries evidence.

Alphabetic models list the language's non-ASCII letters, most frequent
first, plus its most common letter bigrams.  Ideographic models describe a
script by code point ranges and list its most common characters.
"""

from __future__ import annotations

import dataclasses
import math
import unicodedata
from collections import Counter

# Cap the number of characters to profile.  Letter frequencies converge
# long before this.
_MAX_PROFILE_CHARS = 10_000

# Rank offset of the expected unigram profile: weight(rank) = 1 / (rank + k).
# Real letter frequencies fall off more gently than 1/rank at the head.
_RANK_OFFSET = 6

# Fewer letter bigrams than this make the bigram hit rate too noisy to use.
_MIN_BIGRAMS = 8

# Hit rate of a model's common bigram list on real text of its language.
_BIGRAM_EXPECTED_HIT = 0.20

# Characters outside ASCII that carry no evidence for any language.
_NEUTRAL_SYMBOLS = frozenset("€£¥©®°±§¶µ№™")

_CJK = (0x4E00, 0x9FFF)
_CJK_EXT_A = (0x3400, 0x4DBF)
_FULLWIDTH = (0xFF10, 0xFF5A)
_HIRAGANA = (0x3040, 0x309F)
_KATAKANA = (0x30A0, 0x30FF)
_HALFWIDTH_KATAKANA = (0xFF66, 0xFF9F)
_ITERATION_MARK = (0x3005, 0x3005)
_HANGUL = (0xAC00, 0xD7A3)
_HANGUL_JAMO = (0x3131, 0x318E)


@dataclasses.dataclass(frozen=True, slots=True)
class LanguageModel:
    """What correctly decoded text in one language looks like.

    Exactly one of *letters* (alphabetic scripts) and *script*
    (ideographic scripts) is set.
    """

    code: str
    letters: str = ""
    bigrams: tuple[str, ...] = ()
    script: tuple[tuple[int, int], ...] = ()
    common: str = ""
    expected_hit: float = 0.35

    @property
    def is_ideographic(self) -> bool:
        return bool(self.script)

    def covers(self, ch: str) -> bool:
        """Return True if *ch* belongs to this language's script."""
        if not self.script:
            return ch in _letter_set(self)
        cp = ord(ch)
        return any(lo <= cp <= hi for lo, hi in self.script)


_LATIN_MODELS: tuple[LanguageModel, ...] = (
    LanguageModel("fr", letters="éàèêçùâîôûëïüœÿæ"),
    LanguageModel("de", letters="üäößé"),
    LanguageModel("es", letters="éáóíñúü"),
    LanguageModel("pt", letters="ãçéáóíêõúâôà"),
    LanguageModel("it", letters="àèéòùìíóú"),
    LanguageModel("nl", letters="ëéïèöüá"),
    LanguageModel("nordic", letters="äåöæøéü"),
    LanguageModel("pl", letters="łęąóżśćńź"),
    LanguageModel("cs", letters="íáéýěřčžůšúňťďó"),
    LanguageModel("hu", letters="éáőöóüíúű"),
    LanguageModel("hr", letters="čšžćđ"),
    LanguageModel("ro", letters="ăîâşţșț"),
    LanguageModel("tr", letters="ıüşçğöâİîû"),
    LanguageModel("lt", letters="ėšųūįčąžę"),
    LanguageModel("lv", letters="āēīūšžčņļķģ"),
    LanguageModel("et", letters="äõüöšž"),
)

_CYRILLIC_MODELS: tuple[LanguageModel, ...] = (
    LanguageModel(
        "ru",
        letters="оеаинтсрвлкмдпуяыьгзбчйхжшюцщэфъё",
        bigrams=(
            "ст", "но", "то", "на", "ен", "ов", "ни", "ра", "во", "ко",
            "ро", "ал", "ре", "по", "ер", "ос", "ол", "пр", "ли", "ть",
            "от", "ка", "не", "ор", "ан", "ет", "ло", "ат", "го", "ве",
            "ны", "ел", "ва", "ль", "ом", "ла", "од", "ск", "ри", "ит",
        ),
    ),
    LanguageModel(
        "uk",
        letters="оаниівтерсклудмпязьгбчхйжюцшєїщфґ",
        bigrams=(
            "на", "ст", "ро", "ні", "по", "ко", "ра", "пр", "ни", "но",
            "ен", "ов", "ан", "ти", "то", "ре", "ві", "ер", "ва", "го",
            "ль", "ал", "ка", "ла", "ли", "от", "ат", "ів", "ок", "ди",
        ),
    ),
    LanguageModel(
        "bg",
        letters="аоеинтрсвлкдпмзяъгучбйжхшщцюьф",
        bigrams=(
            "на", "то", "ст", "ра", "те", "но", "ни", "ко", "ър", "ат",
            "пр", "по", "ен", "ре", "ва", "та", "ет", "во", "де", "да",
            "за", "ли", "ла", "ал", "ка", "ор", "ро", "от", "ан", "ия",
        ),
    ),
    LanguageModel("be", letters="аонеіырвтсклдмяупзьбгчйхжўшцюёэф"),
    LanguageModel("sr", letters="аоиенрстјвдклумпзгбчцшћхжљњђџф"),
)

_OTHER_ALPHABETIC_MODELS: tuple[LanguageModel, ...] = (
    LanguageModel("el", letters="αοετινσρκπμυληςόίάέωδγχήθύφώβξζψϊΐϋΰ"),
    LanguageModel("he", letters="יוהמלארבנתשעכדחקפסזגטצךםןףץ"),
    LanguageModel("ar", letters="اليمونرتبعهدفكسقحجشصطذخضزثغظةىأإآؤئء"),
)

_IDEOGRAPHIC_MODELS: tuple[LanguageModel, ...] = (
    LanguageModel(
        "ja",
        script=(
            _HIRAGANA,
            _KATAKANA,
            _CJK,
            _CJK_EXT_A,
            _HALFWIDTH_KATAKANA,
            _ITERATION_MARK,
            _FULLWIDTH,
        ),
        common=(
            "のにはをたがでてとしれさいるかなもっこりまあうすくきょらつおんだ"
            "よわせけえどみゃゅやそばちねめひふほろずじ"
            "日本人一大年中会出事時国者上生自分行見言思何今東京"
            "ーンスルトクラリイタドシカレッ"
        ),
        expected_hit=0.45,
    ),
    LanguageModel(
        "zh",
        script=(_CJK, _CJK_EXT_A, _FULLWIDTH),
        common=(
            "的一是不了在人有我他这个们中来上大为和国地到以说时要就出会可也你"
            "对生能而子那得于着下自之年过发后作里用道行所然家种事成方多经么去"
            "法学如都同现当没动面起看定天分还进好小部其些主样理心她本前开但因"
            "只从想实日军者意无力它与长把机十民第公此已工使情明性知全三又关点"
            "正业外将两高间由问很最重并物手应战向头文体政美相见被利什二等产或"
            "新己制身果加西斯月话合回特代内信表化老给世位次度门任常先海通教儿"
            "原东声提立及比员解水名真论处走义各入几口认条平系气题活尔更别打女"
            "变四神总何电数安少报才结反受目太量再感建务做接必场件计管期市直德"
            "资命山金指克许统区保至队形社便空决治展马科司五基眼书非则听白却界"
        ),
    ),
    LanguageModel(
        "zh-hant",
        script=(_CJK, _CJK_EXT_A, _FULLWIDTH),
        common=(
            "的一是不了在人有我他這個們中來上大為和國地到以說時要就出會可也你"
            "對生能而子那得於著下自之年過發後作裡用道行所然家種事成方多經麼去"
            "法學如都同現當沒動面起看定天分還進好小部其些主樣理心她本前開但因"
            "只從想實日軍者意無力它與長把機十民第公此已工使情明性知全三又關點"
            "正業外將兩高間由問很最重並物手應戰向頭文體政美相見被利什二等產或"
            "新己制身果加西斯月話合回特代內信表化老給世位次度門任常先海通教兒"
            "原東聲提立及比員解水名真論處走義各入幾口認條平系氣題活爾更別打女"
            "變四神總何電數安少報才結反受目太量再感建務做接必場件計管期市直德"
        ),
    ),
    LanguageModel(
        "ko",
        script=(_HANGUL, _HANGUL_JAMO, _CJK, _FULLWIDTH),
        common=(
            "이다는의에하고을가로서한지기사도자를니리있어대인그수아보일나시정라"
            "요것들게해국구우면내적전없만성제장부상거주원여오동세과위소경까마년"
            "되신학용생안할같모많합니습"
        ),
        expected_hit=0.30,
    ),
)

MODELS: dict[str, LanguageModel] = {
    model.code: model
    for model in (
        *_LATIN_MODELS,
        *_CYRILLIC_MODELS,
        *_OTHER_ALPHABETIC_MODELS,
        *_IDEOGRAPHIC_MODELS,
    )
}

# Per-model derived data, computed on first use.  Models are immutable and
# the derivation is idempotent, so concurrent first calls are harmless.
_LETTER_SETS: dict[str, frozenset[str]] = {}
_RANK_WEIGHTS: dict[str, tuple[dict[str, float], float]] = {}
_COMMON_SETS: dict[str, frozenset[str]] = {}


def _letter_set(model: LanguageModel) -> frozenset[str]:
    letters = _LETTER_SETS.get(model.code)
    if letters is None:
        letters = frozenset(model.letters)
        _LETTER_SETS[model.code] = letters
    return letters


def _rank_weights(model: LanguageModel) -> tuple[dict[str, float], float]:
    """Return ``(weight by letter, L2 norm)`` of the expected unigram profile."""
    cached = _RANK_WEIGHTS.get(model.code)
    if cached is None:
        weights = {
            ch: 1.0 / (rank + _RANK_OFFSET) for rank, ch in enumerate(model.letters)
        }
        cached = (weights, math.sqrt(sum(w * w for w in weights.values())))
        _RANK_WEIGHTS[model.code] = cached
    return cached


def _common_set(model: LanguageModel) -> frozenset[str]:
    common = _COMMON_SETS.get(model.code)
    if common is None:
        common = frozenset(model.common)
        _COMMON_SETS[model.code] = common
    return common


def get_model(code: str) -> LanguageModel:
    """Return the model for language *code*.

    :raises KeyError: If no model exists for *code*.
    """
    return MODELS[code]


def is_neutral(ch: str) -> bool:
    """Return True if *ch* is punctuation, spacing or a common sign."""
    if ch in _NEUTRAL_SYMBOLS:
        return True
    return unicodedata.category(ch)[0] in ("P", "Z")


def _fold(ch: str) -> str:
    """Lowercase a single character, keeping it if lowering changes its length."""
    low = ch.lower()
    return low if len(low) == 1 else ch


class TextProfile:
    """Pre-computed non-ASCII character statistics for one decoded text.

    Computing this once per decoded candidate and reusing it across all of
    the encoding's language models keeps per-model scoring proportional to
    the number of distinct characters rather than the text length.
    """

    __slots__ = ("bigram_total", "bigrams", "chars", "total")

    def __init__(self, text: str) -> None:
        """Profile *text*.

        :param text: Decoded text of one candidate encoding.
        """
        text = text[:_MAX_PROFILE_CHARS]
        chars: Counter[str] = Counter()
        bigrams: Counter[str] = Counter()
        prev = ""
        for ch in text:
            if ord(ch) >= 0x80 and not is_neutral(ch):
                chars[_fold(ch)] += 1
            if ch.isalpha():
                low = _fold(ch)
                if prev and (ord(prev) >= 0x80 or ord(low) >= 0x80):
                    bigrams[prev + low] += 1
                prev = low
            else:
                prev = ""
        self.chars = chars
        self.total = sum(chars.values())
        self.bigrams = bigrams
        self.bigram_total = sum(bigrams.values())


def _cosine(profile: TextProfile, model: LanguageModel) -> float:
    weights, model_norm = _rank_weights(model)
    dot = 0.0
    sq_sum = 0
    for ch, count in profile.chars.items():
        w = weights.get(ch)
        if w is not None:
            dot += w * count
            sq_sum += count * count
    if not sq_sum or not model_norm:
        return 0.0
    return dot / (model_norm * math.sqrt(sq_sum))


def score_language(profile: TextProfile, model: LanguageModel) -> float:
    """Score a text profile against one language model.

    The score is the fraction of non-neutral, non-ASCII characters that
    belong to the language's script (coverage), times how well their
    distribution fits the language (fit).  Both are in ``[0, 1]``.

    :param profile: Profile of the decoded text.
    :param model: The language model to score against.
    :returns: A score in ``[0, 1]``; ``0.0`` when the profile is empty.
    """
    if profile.total == 0:
        return 0.0

    in_script = sum(
        count for ch, count in profile.chars.items() if model.covers(ch)
    )
    if in_script == 0:
        return 0.0
    coverage = in_script / profile.total

    if model.is_ideographic:
        common = _common_set(model)
        hits = sum(count for ch, count in profile.chars.items() if ch in common)
        fit = min(1.0, (hits / in_script) / model.expected_hit)
        return coverage * fit

    fit = _cosine(profile, model)
    if model.bigrams and profile.bigram_total >= _MIN_BIGRAMS:
        hits = sum(profile.bigrams[bigram] for bigram in model.bigrams)
        bigram_fit = min(1.0, (hits / profile.bigram_total) / _BIGRAM_EXPECTED_HIT)
        fit = 0.5 * fit + 0.5 * bigram_fit
    return coverage * fit


def score_best_language(
    profile: TextProfile, languages: tuple[str, ...]
) -> tuple[float, str | None]:
    """Score a profile against several languages and keep the best.

    :param profile: Profile of the decoded text.
    :param languages: Language codes to try, in preference order.
    :returns: A ``(score, language)`` tuple; ``(0.0, None)`` if nothing
        scored above zero.
    """
    best_score = 0.0
    best_lang: str | None = None
    for code in languages:
        s = score_language(profile, get_model(code))
        if s > best_score:
            best_score = s
            best_lang = code
    return best_score, best_lang
