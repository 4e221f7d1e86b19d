from trip_planner.prompts.system_prompt import SYSTEM_PROMPT

__all__ = ["SYSTEM_PROMPT"]
