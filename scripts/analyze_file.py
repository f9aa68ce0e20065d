import asyncio
import mimetypes
import os
import sys

# Add project root to path so we can import callscope
sys.path.append(os.getcwd())

from callscope.config.settings import settings
from callscope.domain.models import OrganizationProfile
from callscope.pipelines.analysis import (
    ContextResolver,
    IndustryCatalog,
    MalformedModelOutput,
    ModelInvoker,
    PipelineConfig,
    PromptConfig,
    compose_prompt,
    normalize_audio,
    normalize_result,
)
from callscope.services.generative_client import GeminiBackend


async def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/analyze_file.py path/to/call.mp3 [industry]")
        return

    file_path = sys.argv[1]
    if not os.path.exists(file_path):
        print(f"File '{file_path}' not found. Please provide a path to an audio file.")
        return

    with open(file_path, "rb") as f:
        audio_bytes = f.read()

    config = PipelineConfig.from_settings(settings, IndustryCatalog.load())
    content_type, _ = mimetypes.guess_type(file_path)
    audio = normalize_audio(audio_bytes, content_type, os.path.basename(file_path))
    print(f"Read {audio.size_bytes} bytes as {audio.mime_type}")

    organization = None
    if len(sys.argv) > 2:
        organization = OrganizationProfile(id="local", name="Local run", industry=sys.argv[2])
    resolved = ContextResolver(
        config.catalog, default_strictness=config.default_strictness
    ).resolve(organization)
    prompt = compose_prompt(PromptConfig(organization=organization), resolved)

    invoker = ModelInvoker(
        GeminiBackend(),
        config.candidate_models,
        decoding=config.decoding,
        timeout_seconds=config.timeout_seconds,
    )
    print(f"Invoking candidates: {', '.join(config.candidate_models)}")
    result = await invoker.invoke(prompt, audio)

    for attempt in result.attempts:
        print(f"  {attempt.model_id}: {attempt.outcome} {attempt.error_message or ''}")

    if result.success is None:
        print("\nNo model produced an answer.")
        return

    try:
        analysis = normalize_result(result.success.raw_text or "", result.success.model_id)
    except MalformedModelOutput as e:
        print(f"\nModel answer was not valid JSON: {e}")
        return

    print("\n--- Analysis ---")
    print(f"Model: {analysis.model_used}")
    print(f"Overall score: {analysis.coaching.overall_score}")
    print(f"Sentiment: {analysis.insights.sentiment}")
    print(f"Red flags: {analysis.coaching.red_flags or 'none'}")
    print(analysis.summary)


if __name__ == "__main__":
    asyncio.run(main())
