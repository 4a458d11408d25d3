"""
Service Discovery Services

Organized by responsibility, in the order a request flows through them:

1. page_automation.py - the browser contract (PageAutomation) and its Selenium implementation
2. interaction_prober.py - clicks non-anchor controls and reports where they lead
3. url_classifier.py - pure heuristics: exclusion, ownership, "different service" verdicts
4. crawl_state.py - per-seed registries of explored / discovered / child URLs
5. frontier.py - FIFO request queue with duplicate suppression and the request budget
6. crawl_orchestrator.py - per-request state machine tying the above together
7. result_sink.py - append-only output of per-seed records
8. company_loader.py - company directory input
"""
