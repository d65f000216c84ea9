class Player:
    def __init__(self, name, seed=None):
        self.name = name
        self.seed = seed

    @classmethod
    def from_dict(cls, data):
        seed = data.get('seed')
        return cls(name=data.get('name', ''), seed=seed if isinstance(seed, int) else None)

    def to_dict(self):
        data = {'name': self.name}
        if self.seed is not None:
            data['seed'] = self.seed
        return data

    def __eq__(self, other):
        if not isinstance(other, Player):
            return NotImplemented
        return self.name == other.name and self.seed == other.seed

    def __repr__(self):
        return f"Player(name={self.name}, seed={self.seed})"


class Moderator:
    def __init__(self, name):
        self.name = name

    @classmethod
    def from_dict(cls, data):
        return cls(name=data.get('name', ''))

    def to_dict(self):
        return {'name': self.name}

    def __eq__(self, other):
        if not isinstance(other, Moderator):
            return NotImplemented
        return self.name == other.name

    def __repr__(self):
        return f"Moderator(name={self.name})"


def same_name(a: str, b: str) -> bool:
    """Case-insensitive name comparison used for roster uniqueness."""
    return a.lower() == b.lower()
