"""Cost estimates from token counts and the pricing table."""
from dataclasses import dataclass, field

from rafctl.transcript import Usage

# Family names used to price model ids missing from the pricing table
MODEL_FAMILIES = ("opus", "sonnet", "haiku")

DEFAULT_PRICING = {
    "claude-opus-4-6": {
        "input": 5.0,
        "output": 25.0,
        "cache_read": 0.5,
        "cache_write": 6.25,
    },
    "claude-sonnet-4-5-20250929": {
        "input": 3.0,
        "output": 15.0,
        "cache_read": 0.3,
        "cache_write": 3.75,
    },
    "claude-haiku-4-5-20251001": {
        "input": 1.0,
        "output": 5.0,
        "cache_read": 0.1,
        "cache_write": 1.25,
    },
}


def resolve_model(model: str, pricing: dict) -> str | None:
    """Resolve a model id to its pricing key, falling back to the model family."""
    if model in pricing:
        return model
    for family in MODEL_FAMILIES:
        if family in model:
            for key in pricing:
                if family in key:
                    return key
    return None


def calculate_cost(usage: Usage, rates: dict) -> float:
    """Calculate dollar cost for token usage (rates are per million tokens)."""
    cost = (
        (usage.input_tokens / 1_000_000) * rates["input"]
        + (usage.output_tokens / 1_000_000) * rates["output"]
        + (usage.cache_read_tokens / 1_000_000) * rates["cache_read"]
        + (usage.cache_write_tokens / 1_000_000) * rates["cache_write"]
    )
    return round(cost, 6)


@dataclass
class ModelCost:
    name: str
    usage: Usage
    cost: float
    priced: bool = True


@dataclass
class CostEstimate:
    models: list[ModelCost] = field(default_factory=list)

    @property
    def total(self) -> float:
        return round(sum(m.cost for m in self.models), 6)

    @property
    def unpriced(self) -> list[str]:
        return [m.name for m in self.models if not m.priced]


def estimate_costs(sessions: list, pricing: dict) -> CostEstimate:
    """Price every model's tokens across sessions, most expensive first.

    Models with no pricing entry are listed at zero cost and flagged.
    """
    usage_by_model: dict[str, Usage] = {}
    for session in sessions:
        for name, usage in session.model_usage.items():
            usage_by_model[name] = usage_by_model.get(name, Usage()) + usage

    models = []
    for name, usage in usage_by_model.items():
        key = resolve_model(name, pricing)
        if key is None:
            models.append(ModelCost(name=name, usage=usage, cost=0.0, priced=False))
        else:
            models.append(ModelCost(name=name, usage=usage, cost=calculate_cost(usage, pricing[key])))
    models.sort(key=lambda m: (-m.cost, -m.usage.total, m.name))
    return CostEstimate(models=models)
