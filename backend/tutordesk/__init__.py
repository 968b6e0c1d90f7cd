"""TutorDesk: inquiry intake and order-management backend."""
