"""
Memory Graph Demo

Ingests a few statements for one user, shows the newer preference
superseding the older one, asks a grounded question, then chats and
shows what the exchange taught the store.

Runs fully in process (SQLite + in-memory locks) against a local Ollama for
the LLM calls. Embeddings still go through an OpenAI-compatible endpoint, so
OPENAI_API_KEY must be set.
"""

import asyncio
import logging

from memory_graph import MemoryGraphSettings, build_memory_service


async def main():
    logging.basicConfig(level=logging.INFO)
    print("=== Memory Graph Demo ===\n")

    settings = MemoryGraphSettings(
        database_url="sqlite:///demo_memory_graph.db",
        llm_provider="ollama",
        llm_model="qwen2.5:7b-instruct",
        llm_chat_model="qwen2.5:7b-instruct",
        llm_base_url="http://localhost:11434",
    )
    service = build_memory_service(settings)
    owner_id = "demo_user"

    statements = [
        "I like Coca-Cola",
        "I work as a software engineer at Google",
        "I hate all cold drinks",
    ]
    for text in statements:
        memory = await service.ingest(owner_id, text)
        print(f"Ingested [{memory.category}] {memory.content} (importance={memory.importance:.2f})")

    print("\nMemories:")
    for memory in service.list_memories(owner_id):
        state = "archived" if memory.is_archived else "active"
        print(f"  - {memory.content} ({state})")
        if memory.superseded_by:
            successor = service.get_memory(owner_id, memory.superseded_by)
            print(f"      superseded by: {successor.content}")

    result = await service.answer(owner_id, "What drinks do I like?")
    print(f"\nQ: What drinks do I like?\nA: {result.answer}")
    print(f"   {result.graph_summary}")

    chat = await service.chat(owner_id, [], "I just signed up for a half marathon in October")
    print(f"\nChat: {chat.response}")
    for memory in chat.insights:
        print(f"  learned: {memory.content} ({memory.category})")

    stats = service.stats(owner_id)
    print(
        f"\nStats: {stats.active_memories} active, {stats.archived_memories} archived, "
        f"{stats.total_relationships} relationships, {stats.total_entities} entities"
    )


if __name__ == "__main__":
    asyncio.run(main())
