"""
Pseudonymous display names derived from provider user ids.
"""

import hashlib

ADJECTIVES = [
    "Agile", "Amber", "Ancient", "Arctic", "Bold", "Brave", "Bright", "Calm",
    "Clever", "Cosmic", "Crimson", "Curious", "Daring", "Dusky", "Eager", "Electric",
    "Fancy", "Fearless", "Festive", "Fluffy", "Frosty", "Gentle", "Gilded", "Glowing",
    "Golden", "Grumpy", "Happy", "Hidden", "Humble", "Icy", "Jolly", "Keen",
    "Lively", "Lucky", "Lunar", "Mellow", "Merry", "Misty", "Nimble", "Noble",
    "Patient", "Polar", "Proud", "Quick", "Quiet", "Rapid", "Rustic", "Shiny",
    "Silent", "Silver", "Sleepy", "Snowy", "Solar", "Sparkling", "Speedy", "Starry",
    "Stormy", "Sunny", "Swift", "Tiny", "Velvet", "Wandering", "Witty", "Zesty",
]

ANIMALS = [
    "Albatross", "Alpaca", "Badger", "Beaver", "Bison", "Chipmunk", "Caribou", "Cheetah",
    "Chinchilla", "Cougar", "Coyote", "Crane", "Dingo", "Dolphin", "Eagle", "Elk",
    "Ermine", "Falcon", "Ferret", "Finch", "Fox", "Gazelle", "Gecko", "Heron",
    "Hedgehog", "Ibex", "Jackal", "Jaguar", "Koala", "Lemur", "Lynx", "Marmot",
    "Marten", "Meerkat", "Mink", "Moose", "Narwhal", "Ocelot", "Orca", "Otter",
    "Owl", "Panda", "Pelican", "Penguin", "Puffin", "Quokka", "Raccoon", "Raven",
    "Reindeer", "Robin", "Salamander", "Seal", "Sparrow", "Squirrel", "Stoat", "Swan",
    "Tapir", "Toucan", "Walrus", "Weasel", "Wolf", "Wolverine", "Yak", "Zebra",
]


def generate_display_name(provider_user_id: str) -> str:
    """Deterministic ``AdjectiveAnimal0000`` name; same id, same name."""
    digest = hashlib.sha256(provider_user_id.encode("utf-8")).digest()
    seed = int.from_bytes(digest[:8], "big")

    seed, adjective_index = divmod(seed, len(ADJECTIVES))
    seed, animal_index = divmod(seed, len(ANIMALS))
    number = seed % 10000
    return f"{ADJECTIVES[adjective_index]}{ANIMALS[animal_index]}{number:04d}"
