"""
Resonant Sanctuary - Full Simulation Loop
=========================================

WHAT THIS SHOWS:
- Loading a JSON scenario with creatures, conversational units and domes
- Agents choosing goals, exploring, teaching and restoring harmony
- Pairwise interactions with scripted (or LLM) dialogue
- A drag-and-drop placement applied between ticks
- A collaborative harmony crisis solved by the creatures
- Snapshots written to ./sanctuary_runs as JSON

RUN:
    python -m examples.sanctuary.run
    python -m examples.sanctuary.run --ticks 40 --seed 7 --llm
"""

import argparse
import asyncio
import random

from sanctuary import (
    CollaborativeProblem,
    Config,
    InMemoryLedger,
    JsonPersistence,
    LLMDialogue,
    Orchestrator,
    ScriptedDialogue,
    load_scenario,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the Resonant Sanctuary simulation")
    parser.add_argument("--ticks", type=int, default=Config.DEFAULT_TICK_COUNT)
    parser.add_argument("--tick-ms", type=float, default=500.0)
    parser.add_argument("--seed", type=int, default=Config.RANDOM_SEED or 7)
    parser.add_argument("--llm", action="store_true", help="Generate dialogue with the configured LLM")
    parser.add_argument("--output", default="sanctuary_runs")
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    rng = random.Random(args.seed)

    world_state, resources = load_scenario("resonant_sanctuary", rng=rng)

    if args.llm:
        Config.validate()
        dialogue = LLMDialogue(fallback=ScriptedDialogue(random.Random(args.seed)))
    else:
        dialogue = ScriptedDialogue(random.Random(args.seed))

    orchestrator = Orchestrator(
        world_state,
        ledger=InMemoryLedger(resources),
        rng=rng,
        persistence=JsonPersistence(args.output),
        dialogue=dialogue,
    )

    # The player drags the dreamer into the bottom-right quadrant before the first tick.
    orchestrator.place_agent("dreamer-1", 300, 260)
    orchestrator.drag_agent(520, 420)
    orchestrator.drop_agent()

    orchestrator.post_problem(
        CollaborativeProblem(
            type="harmony_crisis",
            required_abilities={"harmony_restoration", "insight_generation"},
            min_creatures=2,
        )
    )

    result = await orchestrator.run(args.ticks, tick_ms=args.tick_ms)

    final = result["final_state"]
    print(f"Run {result['run_id']} finished at tick {final.tick}")
    print(f"Final resources: {final.resources}")
    for synergy in orchestrator.active_synergies:
        print(f"  Synergy: {synergy.name} {synergy.bonus}")
    rates = orchestrator.production_rates({"inspiration": 1.0, "harmony": 0.5, "insight": 0.2})
    print(f"Production rates with synergies: {rates}")


if __name__ == "__main__":
    asyncio.run(main())
