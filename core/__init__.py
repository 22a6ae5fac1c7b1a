"""Cross-cutting helpers shared by every layer."""
