from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Sequence

ASKS: tuple[str, ...] = (
    "Urban commuters are exhausted. Pitch a product that makes their mornings easier.",
    "Remote teams feel disconnected. Pitch something that brings them together.",
    "Pet owners worry while at work. Pitch a way to keep pets happy all day.",
    "Grandparents struggle with new tech. Pitch a device they would actually love.",
    "College students are always broke. Pitch a service that saves them money.",
    "Nobody reads the terms and conditions. Pitch a fix.",
    "Houseplants keep dying. Pitch a product that keeps them alive.",
    "Weddings are too expensive. Pitch a disruptive alternative.",
    "People hate going to the dentist. Pitch a better experience.",
    "Meetings could have been emails. Pitch a tool that ends bad meetings.",
    "Kids refuse to eat vegetables. Pitch a solution parents will pay for.",
    "Airports are miserable. Pitch a way to make layovers fun.",
    "Everyone loses their keys. Pitch the last key finder anyone needs.",
    "Gym memberships go unused. Pitch a fitness product people stick with.",
    "Neighbors never talk anymore. Pitch a product that builds community.",
)

MUST_HAVES: tuple[str, ...] = (
    "Must include a wearable component.",
    "Must run on solar power.",
    "Must integrate with public transit.",
    "Must include a daily ritual.",
    "Must use a subscription model.",
    "Must involve a celebrity endorsement.",
    "Must be edible.",
    "Must fit in a pocket.",
    "Must work underwater.",
    "Must include a loyalty program.",
    "Must use blockchain.",
    "Must have a mascot.",
    "Must be voice controlled.",
    "Must be shaped like an animal.",
    "Must include a social feed.",
    "Must be made from recycled materials.",
    "Must glow in the dark.",
    "Must involve a robot.",
    "Must be sold door to door.",
    "Must include a game element.",
    "Must cost under five dollars.",
    "Must be used by the whole family.",
    "Must work without electricity.",
    "Must include a companion app.",
    "Must be inflatable.",
    "Must involve a drone.",
    "Must include a built-in speaker.",
    "Must be available only at night.",
    "Must be luxury priced.",
    "Must include a live human expert.",
    "Must use augmented reality.",
    "Must come with a theme song.",
    "Must be modular.",
    "Must make a sound when used.",
    "Must include a monthly surprise box.",
    "Must support a charitable cause.",
    "Must be operated with one hand.",
    "Must include a smell feature.",
    "Must be collectible.",
    "Must be weatherproof.",
)

SURPRISES: tuple[str, ...] = (
    "Your product is secretly for cats.",
    "Pitch it entirely in rhyme.",
    "Your product must be illegal in at least one country.",
    "The product was invented by accident.",
    "Your company is run by a time traveler.",
    "Your target customer is a pirate.",
    "It must be powered by feelings.",
    "The product is sold exclusively at funerals.",
    "Your investors are all toddlers.",
    "Mention a rival company by name at least twice.",
    "Your product has a dramatic backstory.",
    "The product only works on Tuesdays.",
)

MASCOTS: tuple[str, ...] = (
    "rocket",
    "chart",
    "gremlin",
    "walrus",
    "goblin",
    "robot",
    "unicorn",
    "shark",
    "octopus",
    "llama",
    "hamster",
    "blob",
    "raccoon",
    "scientist",
)

VOICES: tuple[str, ...] = (
    "Neon Announcer",
    "Calm Founder",
    "Buzzword Bot",
)

RULES: tuple[str, ...] = (
    "Walrus rotates each round, cycling through every player.",
    "Walrus picks one of three ASK cards before the timer runs out.",
    "Each player draws 4 MUST HAVEs and must use at least 1.",
    "Every extra MUST HAVE used earns a bonus on a win.",
    "One random non-Walrus player gets a secret Walrus Surprise.",
    "If the Walrus Surprise player wins, the base award is doubled.",
    "Players pitch on a timer and may add a quick sketch.",
    "If a pitch is AI-generated, a correct challenge disqualifies them and costs 1 point; "
    "a wrong challenge disqualifies the accuser.",
    "Reach the score threshold to trigger the final round: the top players pitch with "
    "3 MUST HAVEs (use at least 2) and everyone else ranks them.",
)


def draw_asks(rng: random.Random, n: int = 3, exclude: Iterable[str] = ()) -> List[str]:
    """Sample n distinct asks, preferring ones not already seen."""
    seen = set(exclude)
    fresh = [a for a in ASKS if a not in seen]
    pool = fresh if len(fresh) >= n else list(ASKS)
    return rng.sample(pool, n)


def deal_cards(
    rng: random.Random,
    players: Sequence[str],
    per_player: int,
    deck: Sequence[str] = MUST_HAVES,
) -> Dict[str, List[str]]:
    """
    Deal per_player cards to each player from one shuffled deck.
    No card goes to two players. Raises ValueError if the deck is too small.
    """
    needed = len(players) * per_player
    if needed > len(deck):
        raise ValueError(f"Deck has {len(deck)} cards, {needed} needed")
    shuffled = list(deck)
    rng.shuffle(shuffled)
    hands: Dict[str, List[str]] = {}
    for i, name in enumerate(players):
        hands[name] = shuffled[i * per_player:(i + 1) * per_player]
    return hands


def pick_surprise(rng: random.Random) -> str:
    return rng.choice(SURPRISES)


def free_mascots(taken: Iterable[Optional[str]]) -> List[str]:
    used = {m for m in taken if m}
    return [m for m in MASCOTS if m not in used]
