"""Local model loading and headline generation utilities.

This module wraps Hugging Face model/tokenizer initialization and exposes a
producer that runs a seq2seq model (optionally a PEFT adapter) in-process.
"""

from functools import lru_cache
import logging
from pathlib import Path
from typing import Dict, List

from peft import PeftConfig, PeftModel
import torch
from transformers import AutoModelForSeq2SeqLM, AutoTokenizer

from headline_agent.producers import HeadlineProducer, split_headline_lines
from headline_agent.prompting import AGENT_INSTRUCTIONS, build_headline_prompt
from headline_agent.schemas import GenerationRequest

logger = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = "google/flan-t5-base"


class Seq2SeqHeadlineProducer(HeadlineProducer):
    """Generates headline candidates with a local seq2seq model."""

    name = "seq2seq"

    def __init__(
        self,
        model_name_or_path: str = DEFAULT_MODEL_PATH,
        instructions: str = AGENT_INSTRUCTIONS,
    ):
        self.model_name_or_path = model_name_or_path
        self.instructions = instructions
        self.tokenizer, self.model = self._load_tokenizer_and_model(model_name_or_path)
        self.device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        self.model.to(self.device)
        logger.info("Loaded %s on %s", model_name_or_path, self.device)

    def _load_tokenizer_and_model(self, model_name_or_path: str):
        """Load either a full model or a PEFT adapter directory."""
        model_path = Path(model_name_or_path)
        is_local_adapter = (
            model_path.exists() and (model_path / "adapter_config.json").exists()
        )

        if is_local_adapter:
            peft_config = PeftConfig.from_pretrained(model_name_or_path)
            base_model_name = peft_config.base_model_name_or_path
            if not base_model_name:
                raise ValueError("Adapter config is missing `base_model_name_or_path`.")
            base_model = AutoModelForSeq2SeqLM.from_pretrained(base_model_name)
            model = PeftModel.from_pretrained(base_model, model_name_or_path)
            tokenizer = AutoTokenizer.from_pretrained(model_name_or_path)
            return tokenizer, model

        tokenizer = AutoTokenizer.from_pretrained(model_name_or_path)
        model = AutoModelForSeq2SeqLM.from_pretrained(model_name_or_path)
        return tokenizer, model

    def _build_params(self, count: int) -> Dict:
        # One short line per headline plus separators.
        return {"max_new_tokens": 32 * count, "min_new_tokens": 8}

    def generate(
        self, request: GenerationRequest, topic: str, count: int = 5
    ) -> List[str]:
        prompt = f"{self.instructions}\n\n{build_headline_prompt(request, count)}"
        inputs = self.tokenizer(
            prompt,
            return_tensors="pt",
            truncation=True,
            max_length=1024,
        ).to(self.device)

        with torch.no_grad():
            output_ids = self.model.generate(
                **inputs,
                do_sample=True,
                temperature=0.8,
                top_p=0.9,
                top_k=50,
                repetition_penalty=1.2,
                no_repeat_ngram_size=3,
                **self._build_params(count),
            )

        decoded = self.tokenizer.decode(output_ids[0], skip_special_tokens=True)
        return split_headline_lines(decoded)[:count]


@lru_cache(maxsize=1)
def get_seq2seq_producer(model_name_or_path: str) -> Seq2SeqHeadlineProducer:
    """Return a cached producer to avoid repeated model loading."""
    return Seq2SeqHeadlineProducer(model_name_or_path=model_name_or_path)
