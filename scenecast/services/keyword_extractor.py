"""Keyword Extractor - derives search keywords for each scene."""

from functools import lru_cache
from typing import Any, Optional

import spacy
from rake_nltk import Rake

from scenecast.core.config import Settings
from scenecast.models.schemas import Scene
from scenecast.utils.text_utils import split_sentences

MAX_RAKE_PHRASES = 8
MAX_PHRASE_WORDS = 3
MIN_PHRASE_CHARS = 4
MIN_KEYWORD_CHARS = 3
MAX_KEYWORDS = 6
MAX_PRIMARY_KEYWORDS = 3
MAX_ENTITIES = 3
MAX_VISUAL_CONCEPTS = 3

PEOPLE_LABELS = ("PERSON",)
PLACE_LABELS = ("GPE", "LOC", "FAC")
ORGANIZATION_LABELS = ("ORG",)
TOPIC_LABELS = ("NORP", "EVENT", "WORK_OF_ART", "PRODUCT")
NOUN_TAGS = ("NOUN", "PROPN")

STOP_WORDS = frozenset("""
a able about above according accordingly across actually after afterwards again against ain't all allow
allows almost alone along already also although always am among amongst an and another any anybody anyhow
anyone anything anyway anyways anywhere apart appear appreciate appropriate are aren't around as aside ask
asking associated at available away awfully b be became because become becomes becoming been before
beforehand behind being believe below beside besides best better between beyond both brief but by c c'mon
c's came can can't cannot cant cause causes certain certainly changes clearly co com come comes concerning
consequently consider considering contain containing contains corresponding could couldn't course currently
d definitely described despite did didn't different do does doesn't doing don't done down downwards during
e each edu eg eight either else elsewhere enough entirely especially et etc even ever every everybody
everyone everything everywhere ex exactly example except f far few fifth first five followed following
follows for former formerly forth four from further furthermore g get gets getting given gives go goes
going gone got gotten greetings h had hadn't happens hardly has hasn't have haven't having he he's hello
help hence her here here's hereafter hereby herein hereupon hers herself hi him himself his hither
hopefully how howbeit however i i'd i'll i'm i've ie if ignored immediate in inasmuch inc indeed indicate
indicated indicates inner insofar instead into inward is isn't it it'd it'll it's its itself j just k keep
keeps kept know knows known l last lately later latter latterly least less lest let let's like liked
likely little look looking looks ltd m mainly many may maybe me mean meanwhile merely might more moreover
most mostly much must my myself n name namely nd near nearly necessary need needs neither never
nevertheless new next nine no nobody non none noone nor normally not nothing novel now nowhere o obviously
of off often oh ok okay old on once one ones only onto or other others otherwise ought our ours ourselves
out outside over overall own p particular particularly per perhaps placed please plus possible presumably
probably provides q que quite qv r rather rd re really reasonably regarding regardless regards relatively
respectively right s said same saw say saying says second secondly see seeing seem seemed seeming seems
seen self selves sensible sent serious seriously seven several shall she should shouldn't since six so
some somebody somehow someone something sometime sometimes somewhat somewhere soon sorry specified specify
specifying still sub such sup sure t t's take taken tell tends th than thank thanks thanx that that's
thats the their theirs them themselves then thence there there's thereafter thereby therefore therein
theres thereupon these they they'd they'll they're they've think third this thorough thoroughly those
though three through throughout thru thus to together too took toward towards tried tries truly try trying
twice two u un under unfortunately unless unlikely until unto up upon us use used useful uses using
usually uucp v value various very via viz vs w want wants was wasn't way we we'd we'll we're we've welcome
well went were weren't what what's whatever when whence whenever where where's whereafter whereas whereby
wherein whereupon wherever whether which while whither who who's whoever whole whom whose why will willing
wish with within without won't wonder would wouldn't x y yes yet you you'd you'll you're you've your yours
yourself yourselves z zero
""".split())


@lru_cache(maxsize=4)
def load_language_model(model_name: str) -> Any:
    """Load a spaCy pipeline once per process."""
    return spacy.load(model_name)


def score_primary_keyword(keyword: str, text: str) -> float:
    """
    Score a keyword for primary selection.

    Frequent, late-appearing and longer keywords score higher:
    ``frequency * 2 + (len(text) - first_index) / len(text) + len(keyword) / 10``.

    Args:
        keyword: Lowercase keyword
        text: Scene text

    Returns:
        Heuristic score
    """
    lowered = text.lower()
    length = len(lowered) or 1
    frequency = lowered.count(keyword)
    position = lowered.find(keyword)
    if position < 0:
        position = length
    return frequency * 2 + (length - position) / length + len(keyword) / 10


def select_primary_keywords(keywords: list[str], text: str, limit: int = MAX_PRIMARY_KEYWORDS) -> list[str]:
    """Top ``limit`` keywords by score; ties keep first-appearance order."""
    ranked = sorted(keywords, key=lambda k: score_primary_keyword(k, text), reverse=True)
    return ranked[:limit]


def dedupe_keywords(candidates: list[str], limit: int = MAX_KEYWORDS) -> list[str]:
    """Lowercase, drop short terms and duplicates, cap at ``limit``."""
    seen: list[str] = []
    for candidate in candidates:
        keyword = " ".join(candidate.split()).lower()
        if len(keyword) < MIN_KEYWORD_CHARS or keyword in seen:
            continue
        seen.append(keyword)
        if len(seen) >= limit:
            break
    return seen


class KeywordExtractor:
    """Combines RAKE phrases with spaCy entities and part-of-speech tags."""

    def __init__(self, settings: Settings, logger: Any, nlp: Optional[Any] = None):
        """
        Initialize keyword extractor.

        Args:
            settings: Application settings
            logger: Logger instance
            nlp: Optional spaCy Language (loaded from settings.spacy_model if omitted)
        """
        self.settings = settings
        self.logger = logger
        self.nlp = nlp if nlp is not None else self._load_nlp()

    def _load_nlp(self) -> Any:
        try:
            return load_language_model(self.settings.spacy_model)
        except OSError as e:
            self.logger.warning(
                f"spaCy model '{self.settings.spacy_model}' not available ({e}). "
                "Using a blank English pipeline: entities, nouns and adjectives will be empty. "
                f"Install with: python -m spacy download {self.settings.spacy_model}"
            )
            return spacy.blank("en")

    def rake_phrases(self, text: str) -> list[str]:
        """
        Rank candidate phrases with RAKE.

        Args:
            text: Scene text

        Returns:
            Up to eight lowercase phrases of at most three words
        """
        rake = Rake(
            stopwords=STOP_WORDS,
            max_length=MAX_PHRASE_WORDS,
            sentence_tokenizer=split_sentences,
            include_repeated_phrases=False,
        )
        rake.extract_keywords_from_text(text)
        phrases = [p for p in rake.get_ranked_phrases() if len(p) >= MIN_PHRASE_CHARS]
        return phrases[:MAX_RAKE_PHRASES]

    def linguistic_features(self, text: str) -> dict[str, list[str]]:
        """
        Extract entities, nouns and adjectives with spaCy.

        Args:
            text: Scene text

        Returns:
            Dict with "entities" (people, places, organizations, topics in that order),
            "nouns" and "adjectives"
        """
        doc = self.nlp(text)
        ents = list(doc.ents)
        entities = []
        for labels in (PEOPLE_LABELS, PLACE_LABELS, ORGANIZATION_LABELS, TOPIC_LABELS):
            entities.extend(ent.text for ent in ents if ent.label_ in labels)

        nouns = [token.text for token in doc if token.pos_ in NOUN_TAGS]
        adjectives = [token.text for token in doc if token.pos_ == "ADJ"]
        return {"entities": entities, "nouns": nouns, "adjectives": adjectives}

    def extract(self, scene: Scene) -> Scene:
        """
        Attach keywords, primary keywords, entities and visual concepts to a scene.

        Args:
            scene: Scene with text

        Returns:
            Updated copy of the scene
        """
        phrases = self.rake_phrases(scene.text)
        features = self.linguistic_features(scene.text)

        keywords = dedupe_keywords(phrases + features["entities"] + features["nouns"])
        primary = select_primary_keywords(keywords, scene.text)

        self.logger.debug(f"Scene {scene.id} keywords: {keywords} (primary: {primary})")
        return scene.model_copy(
            update={
                "keywords": keywords,
                "primary_keywords": primary,
                "entities": features["entities"][:MAX_ENTITIES],
                "visual_concepts": features["adjectives"][:MAX_VISUAL_CONCEPTS],
            }
        )

    def extract_all(self, scenes: list[Scene]) -> list[Scene]:
        """Extract keywords for every scene, in order."""
        updated = [self.extract(scene) for scene in scenes]
        self.logger.info(f"✅ Keywords extracted for {len(updated)} scenes")
        return updated
