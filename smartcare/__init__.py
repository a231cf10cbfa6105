"""SmartCare Connect backend."""
