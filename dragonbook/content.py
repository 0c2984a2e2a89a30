"""The Dragon of Montblanc: the storybook bundled with the game."""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

from storybook.narrative.context import NarrativeContext
from storybook.narrative.expr import unreachable
from storybook.narrative.graph import StoryGraph
from storybook.narrative.loader import load_story_file
from storybook.narrative.types import Choice, ForkNode, SimpleExtra, SimpleNode
from storybook.settings import StoryCfg

STORIES_DIR = Path(__file__).resolve().parent / "stories"


@dataclass
class DragonContext(NarrativeContext):
    # What terrorised Montblanc
    normal_dragon: bool = False
    disguised_dragon: bool = False
    # Why the princess went
    princess_fighter: bool = False
    princess_fan: bool = False
    king_coward: bool = False
    # Who waited outside the walls
    jordi_warrior: bool = False
    jordi_roses: bool = False


def _illus(name: str) -> str:
    return f"illustrations/{name}.png"


def _set(*flags: str):
    def effect(ctx: DragonContext) -> None:
        for flag in flags:
            setattr(ctx, flag, True)
    return effect


# --- context-dependent pieces ---------------------------------------------------

def _offering_extra(ctx: DragonContext) -> SimpleExtra:
    if ctx.normal_dragon:
        return SimpleExtra(illustration=_illus("dragon-with-cow"))
    if ctx.disguised_dragon:
        return SimpleExtra(illustration=_illus("jordi-dragon-with-cow"),
                           secondary_text="The cow did not look *very* worried.")
    unreachable(ctx, "Offering page needs to know what kind of dragon it is")


def _after_volunteering(ctx: DragonContext) -> int:
    if ctx.normal_dragon:
        return 3
    if ctx.disguised_dragon:
        return 5
    unreachable(ctx, "Nobody decided what the dragon was")


def _meeting_jordi(ctx: DragonContext) -> str:
    if ctx.jordi_warrior:
        return "Sant Jordi, sword in hand, charged at the dragon *all by himself*."
    if ctx.jordi_roses:
        return ("Sant Jordi knelt and offered her the roses. "
                "Behind him, the dragon sighed *very* dramatically.")
    unreachable(ctx, "Sant Jordi was never met")


def _meeting_jordi_extra(ctx: DragonContext) -> SimpleExtra:
    if ctx.jordi_warrior:
        return SimpleExtra(illustration=_illus("sant-jordi-fighting-alone"))
    return SimpleExtra(illustration=_illus("sensual-dragon-coming-out-of-cave"))


def _princess_mood(ctx: DragonContext) -> str:
    if ctx.princess_fighter:
        return "Cleodolinda drew her sword. She had come here to *finish* this."
    if ctx.princess_fan:
        return "But it was hard to fool the number one dragon fan in the whole kingdom."
    if ctx.king_coward:
        return "Cleodolinda, who had never asked for any of this, sighed and rolled up her sleeves."
    unreachable(ctx, "The princess left the walls without a reason")


def _dragon_face_off(ctx: DragonContext) -> str:
    if ctx.princess_fan:
        return "The dragon came out of its cave. Cleodolinda's eyes *sparkled*."
    return "The dragon came out of its cave, and the ground shook under its feet."


def _talk_route(ctx: DragonContext) -> int:
    # Only someone who knows dragons can talk one into friendship
    return 14 if ctx.princess_fan else 15


def _jordi_route(ctx: DragonContext) -> int:
    if ctx.jordi_warrior:
        return 13
    if ctx.jordi_roses:
        return 15
    unreachable(ctx, "Sant Jordi was never met")


def _forgive_text(ctx: DragonContext) -> str:
    if ctx.princess_fighter:
        return "She put her sword away. Slowly."
    return "She even helped him fold the costume."


def build_story() -> StoryGraph:
    """ Build (unsealed) the bundled story graph. """
    g = StoryGraph(DragonContext, title="The Dragon of Montblanc")

    g.add_node(0, ForkNode(
        content="Once upon a time...",
        choices=[
            Choice(
                text="...an *ordinary* dragon, probably with self-esteem issues, who terrorised the village of Montblanc.",
                illustration=_illus("normal-dragon"),
                effect=_set("normal_dragon"),
                next=1,
            ),
            Choice(
                text="...a human in a shabby dragon costume, who terrorised the village of Montblanc.",
                illustration=_illus("sant-jordi-disguised-as-dragon"),
                effect=_set("disguised_dragon"),
                next=1,
            ),
        ],
    ))
    g.add_node(1, SimpleNode(
        content="To keep it happy and far from the village, the neighbours offered it animals.",
        extra=_offering_extra,
        next=2,
    ))
    g.add_node(2, ForkNode(
        content="But it was not enough to keep it away, so they took other measures.",
        choices=[
            Choice(
                text="Princess Cleodolinda, tired of the village's useless attempts, volunteered to *slay* the dragon.",
                illustration=_illus("princess-go-kill-dragon"),
                effect=_set("princess_fighter"),
                next=_after_volunteering,
            ),
            Choice(
                text="Princess Cleodolinda, eager to meet a real dragon, volunteered to use her vast knowledge of dragons.",
                illustration=_illus("princess-excited-to-be-picked"),
                effect=_set("princess_fan"),
                next=_after_volunteering,
            ),
            Choice(
                text="The King himself was drawn in the lottery. Out of sheer cowardice, he told everyone the Princess had been picked.",
                illustration=_illus("king-picks-princess"),
                additional_text="Nobody dared to contradict him.",
                effect=_set("king_coward"),
                next=_after_volunteering,
            ),
        ],
    ))

    # --- the dragon is a dragon ---
    g.add_node(3, ForkNode(
        content="Cleodolinda left the city walls and headed for her destiny. There she found...",
        choices=[
            Choice(
                text="...a *very* pumped-up Sant Jordi getting ready to battle the dragon.",
                illustration=_illus("sant-jordi-warrior"),
                effect=_set("jordi_warrior"),
                next=4,
            ),
            Choice(
                text="...Sant Jordi, blushing and holding a bunch of roses.",
                illustration=_illus("sant-jordi-roses"),
                effect=_set("jordi_roses"),
                next=4,
            ),
        ],
    ))
    g.add_node(4, SimpleNode(content=_meeting_jordi, extra=_meeting_jordi_extra, next=10))

    # --- the dragon is Sant Jordi in a costume ---
    g.add_node(5, SimpleNode(
        content=("Cleodolinda left the city walls and headed for her destiny. There she found... "
                 "the dragon, sitting by a campfire roasting marshmallows. "
                 "A *rather odd* activity for a dragon..."),
        extra=SimpleExtra(illustration=_illus("sant-jordi-making-marshmallows")),
        next=6,
    ))
    g.add_node(6, ForkNode(
        content=_princess_mood,
        choices=[
            Choice(
                text="Punch the dragon right on the snout.",
                illustration=_illus("princess-punches-jordi-dragon"),
                next=7,
            ),
            Choice(
                text="Study the dragon *very* carefully.",
                illustration=_illus("princess-analyzing-jordi-dragon"),
                next=8,
            ),
        ],
    ))
    g.add_node(7, SimpleNode(
        content="The costume head rolled across the grass. Underneath was Sant Jordi, who confessed everything.",
        extra=SimpleExtra(illustration=_illus("jordi-dragon-confesses")),
        next=9,
    ))
    g.add_node(8, SimpleNode(
        content="That dragon was clearly a human. Cleodolinda pulled off the mask: it was *Sant Jordi*!",
        extra=SimpleExtra(illustration=_illus("princess-unmasks-jordi-dragon")),
        next=9,
    ))
    g.add_node(9, ForkNode(
        content="Jordi explained that he only wanted to be a hero, and heroes need a dragon.",
        choices=[
            Choice(text="Forgive him.", additional_text=_forgive_text, next=11),
            Choice(text="Send him back to the village, costume and all.", next=12),
        ],
    ))

    g.add_node(10, ForkNode(
        content=_dragon_face_off,
        choices=[
            Choice(
                text="Cleodolinda walks up to the dragon and *talks* to it.",
                illustration=_illus("princess-x-dragon"),
                next=_talk_route,
            ),
            Choice(
                text="Let Sant Jordi handle it.",
                next=_jordi_route,
            ),
        ],
    ))

    # --- endings ---
    g.add_node(11, SimpleNode(
        content="Together they invented a new festival for Montblanc, with *books* and *roses* for everyone.",
        extra=SimpleExtra(illustration=_illus("sant-jordi-roses"), decorations=("textures/roses-frame.png",)),
    ))
    g.add_node(12, SimpleNode(
        content="Jordi walked home in his costume. The village laughed about it for a hundred years.",
        extra=SimpleExtra(illustration=_illus("sant-jordi-disguised-as-dragon")),
    ))
    g.add_node(13, SimpleNode(
        content="Sant Jordi came back with the dragon's head... made of cardboard. The real dragon had gone on holiday.",
        extra=SimpleExtra(illustration=_illus("sant-jordi-with-dragon-head")),
    ))
    g.add_node(14, SimpleNode(
        content="Cleodolinda and the dragon became inseparable, and left Montblanc together to see the world.",
        extra=SimpleExtra(illustration=_illus("princess-leaves-with-dragon")),
    ))
    g.add_node(15, SimpleNode(
        content="Flattered by so much attention, the dragon came back every April, and everybody got a rose.",
        extra=SimpleExtra(illustration=_illus("dragon-returns-from-holidays"),
                          decorations=("textures/roses-frame.png",)),
    ))
    return g


def load_configured_story(cfg: StoryCfg) -> StoryGraph:
    """ The bundled story or a YAML one, validated and sealed. """
    if cfg.source == "builtin":
        graph = build_story()
    else:
        path = Path(cfg.source)
        if not path.is_absolute() and not path.exists():
            path = STORIES_DIR / cfg.source
        graph = load_story_file(str(path))
    graph.validate_or_raise(exhaustive=cfg.validate_exhaustive)
    return graph
