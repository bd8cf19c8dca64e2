from cardintake.services.llm.openai_client import CARD_PAIR_PROMPT, VisionResponse, analyze_card_pair

__all__ = ["analyze_card_pair", "VisionResponse", "CARD_PAIR_PROMPT"]
