"""
Sincronizacion de historial de revisiones de Airtable.

La API publica de Airtable no expone el historial de cambios por campo. Este
paquete lo recupera en dos fases:

1. Login interactivo (Selenium) que produce una SessionCredential opaca.
2. Requests sin navegador al endpoint interno de actividades de cada registro,
   reutilizando solo esa credencial.

Luego parsea los fragmentos HTML de diff y persiste raw + parseado con UPSERT
por (record_id, base_id, table_id), de modo que re-ejecutar es idempotente.
"""
