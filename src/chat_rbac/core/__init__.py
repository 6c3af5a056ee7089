"""Pure permission model: catalog, snapshots, engine and hierarchy guard."""
