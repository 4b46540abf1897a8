import asyncio
import os
from typing import List

from dotenv import load_dotenv
from openai import AsyncOpenAI

from agentic_engine import Message, OpenAIGateway, build_agent
from agentic_engine.llm_core import setup_logging

# Load environment variables (OPENAI_API_KEY and the AGENTIC_* settings)
load_dotenv()


async def main() -> None:
    """
    Run an interactive agent session in the terminal using OpenAI.
    """
    print("Welcome to the CLI Agent (OpenAI)!")

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        print("Error: OPENAI_API_KEY not found in environment variables.")
        return

    if os.getenv("AGENTIC_DEBUG"):
        setup_logging()

    gateway = OpenAIGateway(
        client=AsyncOpenAI(api_key=api_key),
        model_name=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
    )

    history: List[Message] = []

    async with await build_agent(gateway) as agent:
        print(f"Tools: {', '.join(t.name for t in agent.registry.tools) or 'none'}")
        print("\nStart chatting! Type 'exit' or 'quit' to stop.")
        while True:
            user_input = input("\nYou: ").strip()
            if user_input.lower() in ["exit", "quit"]:
                print("Goodbye!")
                break

            if not user_input:
                continue

            try:
                result = await agent.run(user_input, history, session_id="cli")
                print(f"Assistant: {result.final_output}")
                print(f"  ({result.outcome.value}, turns={result.turns_used}, tools={result.tool_calls_count})")
                history = result.messages

            except Exception as e:
                print(f"An error occurred: {e}")


if __name__ == "__main__":
    asyncio.run(main())
