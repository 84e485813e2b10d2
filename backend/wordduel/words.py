import random

_SOURCE = """
cigar rebut sissy humph awake blush focal evade naval serve heath dwarf model
karma stink grade quiet bench abate feign major death fresh crust stool colon
abase marry react batty pride floss helix croak staff paper unfed whelp trawl
outdo adobe crazy sower repay digit crate cluck spike mimic pound maxim linen
unmet flesh booby forth first stand belly ivory seedy print yearn drain bribe
stout panel crass flume offal agree error swirl argue bleed delta flick totem
wooer front shrub parry biome lapel start greet goner golem lusty loopy round
audit lying gamma labor islet civic forge corny moult basic salad agate spicy
spray essay fjord spend kebab guild aback motor alone hatch hyper thumb dowry
ought belch dutch pilot tweed comet jaunt enema steed abyss growl fling dozen
boozy erode world gouge click briar great altar pulpy blurt coast duchy groin
fixer group rogue badly smart pithy gaudy chill heron vodka finer surer radio
rouge perch retch wrote clock tilde store prove bring solve cheat grime exult
usher epoch triad break rhino viral conic masse sonic vital trace using peach
champ baton brake pluck craze gripe weary picky acute ferry aside tapir troll
unify rebus boost truss siege tiger banal slump crank gorge query drink favor
abbey tangy panic solar shire proxy point robot prick wince crimp knoll sugar
whack mount perky could wrung light those moist shard pleat aloft skill elder
frame humor pause ulcer ultra robin cynic agora twirl sound overt plant lager
scary meter buddy quack saute lyric ascot flack fleek stung broke twang swill
birch woozy
"""

WORD_LENGTH = 5

# Lower-case, fixed length, first occurrence wins
WORDS = tuple(dict.fromkeys(
    w.lower() for w in _SOURCE.split() if len(w) == WORD_LENGTH
))


def select_secret_word(rng=random) -> str:
    """Pick the shared secret word for a new session."""
    return rng.choice(WORDS)
