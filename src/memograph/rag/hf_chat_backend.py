from __future__ import annotations

import logging
from typing import Optional

import torch
from transformers import AutoModelForCausalLM, AutoTokenizer

from memograph.config.settings import ModelConfig


JSON_INSTRUCTION = "Respond with a single valid JSON object and nothing else."


class HuggingFaceChatBackend:
    """
    Local HuggingFace chat model behind the completion capability.

    One locally loaded model answers every request; the per-request
    ModelConfig is recorded in logs only.
    """

    def __init__(
        self,
        *,
        model_name: str,
        hf_token: Optional[str] = None,
        device: Optional[str] = None,
        max_new_tokens: int = 1024,
        temperature: float = 0.3,
        top_p: float = 0.9,
    ) -> None:

        if device is None:
            device = "cuda" if torch.cuda.is_available() else "cpu"

        tokenizer_kwargs = {"use_fast": True}
        if hf_token:
            tokenizer_kwargs["token"] = hf_token

        self.tokenizer = AutoTokenizer.from_pretrained(model_name, **tokenizer_kwargs)
        if self.tokenizer.pad_token is None:
            self.tokenizer.pad_token = self.tokenizer.eos_token

        model_kwargs = {
            "torch_dtype": torch.float16 if device == "cuda" else torch.float32,
            "device_map": "auto" if device == "cuda" else None,
        }
        if hf_token:
            model_kwargs["token"] = hf_token

        self.model = AutoModelForCausalLM.from_pretrained(model_name, **model_kwargs)
        self.model.eval()

        self.model_name = model_name
        self.max_new_tokens = max_new_tokens
        self.temperature = temperature
        self.top_p = top_p

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        model: ModelConfig,
        json_output: bool = False,
    ) -> str:
        if json_output:
            system_prompt = f"{system_prompt}\n\n{JSON_INSTRUCTION}"

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        input_ids = self.tokenizer.apply_chat_template(
            messages,
            add_generation_prompt=True,
            return_tensors="pt",
        ).to(self.model.device)

        logging.getLogger("memograph.capability").debug(
            "hf completion requested=%s served_by=%s json=%s",
            model.model_id,
            self.model_name,
            json_output,
        )

        with torch.no_grad():
            output = self.model.generate(
                input_ids,
                max_new_tokens=self.max_new_tokens,
                do_sample=self.temperature > 0,
                temperature=self.temperature,
                top_p=self.top_p,
                pad_token_id=self.tokenizer.eos_token_id,
                eos_token_id=self.tokenizer.eos_token_id,
            )

        generated = output[0][input_ids.shape[-1]:]
        return self.tokenizer.decode(generated, skip_special_tokens=True).strip()
